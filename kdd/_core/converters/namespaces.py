from kdd._cogs.structs import bodies, keys, values
from kdd._core.converters import names, selectors


def namespace_to_profile(namespace: bodies.RawBody) -> keys.KVPair[values.Profile]:
    """
    Every namespace is a profile, which allows all traffic in and out.

    The namespace's labels become the profile's labels (prefixed), so that
    the policies can select the pods by their namespaces' labels.
    """
    name = bodies.get_name(namespace)
    labels = {
        f'{selectors.NAMESPACE_LABEL_PREFIX}{key}': value
        for key, value in bodies.get_labels(namespace).items()
    }
    return keys.KVPair(
        key=keys.ProfileKey(name=names.build_profile_name(name)),
        value=values.Profile(
            rules=values.ProfileRules(
                inbound_rules=[values.Rule(action='allow')],
                outbound_rules=[values.Rule(action='allow')],
            ),
            labels=labels,
        ),
        revision=bodies.get_revision(namespace),
    )
