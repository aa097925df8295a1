from typing import cast

from kdd._cogs.clients import api, auth
from kdd._cogs.configs import configuration
from kdd._cogs.helpers import typedefs
from kdd._cogs.structs import bodies, references


async def create_obj(
        *,
        context: auth.APIContext,
        settings: configuration.DatastoreSettings,
        resource: references.Resource,
        body: bodies.RawBody,
        logger: typedefs.Logger,
) -> bodies.RawBody:
    """
    Create an object; fail with `errors.APIConflictError` if it already exists.
    """
    body = cast(bodies.RawBody, dict(body))  # shallow: for mutation of the top-level keys below.
    body.setdefault('apiVersion', resource.api_version)
    if resource.kind is not None:
        body.setdefault('kind', resource.kind)

    namespace = cast(references.Namespace, body.get('metadata', {}).get('namespace'))
    created_body: bodies.RawBody = await api.post(
        url=resource.get_url(namespace=namespace if resource.namespaced else None),
        payload=body,
        context=context,
        settings=settings,
        logger=logger,
    )
    return created_body
