from typing import cast

from kdd._cogs.clients import api, auth
from kdd._cogs.configs import configuration
from kdd._cogs.helpers import typedefs
from kdd._cogs.structs import bodies, references


async def replace_obj(
        *,
        context: auth.APIContext,
        settings: configuration.DatastoreSettings,
        resource: references.Resource,
        body: bodies.RawBody,
        logger: typedefs.Logger,
) -> bodies.RawBody:
    """
    Replace an existing object as a whole (HTTP PUT).

    The body must carry the name, and usually the ``resourceVersion``:
    K8s uses it for the optimistic concurrency control, and fails
    with `errors.APIConflictError` if the object was modified meanwhile.
    The custom resources always require it.
    """
    body = cast(bodies.RawBody, dict(body))  # shallow: for mutation of the top-level keys below.
    body.setdefault('apiVersion', resource.api_version)
    if resource.kind is not None:
        body.setdefault('kind', resource.kind)

    metadata = body.get('metadata', {})
    namespace = cast(references.Namespace, metadata.get('namespace'))
    replaced_body: bodies.RawBody = await api.put(
        url=resource.get_url(namespace=namespace if resource.namespaced else None,
                             name=metadata['name']),
        payload=body,
        context=context,
        settings=settings,
        logger=logger,
    )
    return replaced_body
