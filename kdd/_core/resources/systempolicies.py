from typing import Any, Mapping, Optional

from kdd._cogs.structs import bodies, keys, references, values
from kdd._core.converters import names
from kdd._core.resources import base


class SystemNetworkPolicyClient(base.CustomResourceClient[keys.PolicyKey,
                                                          keys.PolicyListOptions,
                                                          values.Policy]):
    """
    The policies which are not backed by the namespaced network policies.

    They are served as policies named ``snp.projectcalico.org/<name>``,
    while the objects themselves are named just ``<name>``. The names
    without the prefix are not of this client, and fail to decode.
    """
    resource = references.SYSTEM_NETWORK_POLICIES

    def build_name(self, key: keys.PolicyKey) -> str:
        return names.parse_system_network_policy_name(key.name)

    def build_spec(self, kvp: keys.KVPair[values.Policy]) -> Mapping[str, Any]:
        return kvp.value.to_dict()

    def parse_body(self, body: bodies.RawBody) -> keys.KVPair[values.Policy]:
        return keys.KVPair(
            key=keys.PolicyKey(name=names.build_system_network_policy_name(bodies.get_name(body))),
            value=values.Policy.from_dict(body['spec']),
            revision=bodies.get_revision(body),
        )

    def options_to_key(self, options: keys.PolicyListOptions) -> Optional[keys.PolicyKey]:
        return keys.PolicyKey(name=options.name) if options.name else None
