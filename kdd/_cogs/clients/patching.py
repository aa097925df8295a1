from typing import Any, Mapping, Optional

from kdd._cogs.clients import api, auth
from kdd._cogs.configs import configuration
from kdd._cogs.helpers import typedefs
from kdd._cogs.structs import bodies, references


async def patch_obj(
        *,
        context: auth.APIContext,
        settings: configuration.DatastoreSettings,
        resource: references.Resource,
        namespace: references.Namespace = None,
        name: str,
        patch: Mapping[str, Any],
        subresource: Optional[str] = None,
        logger: typedefs.Logger,
) -> bodies.RawBody:
    """
    Patch an object of a specific kind with a JSON merge-patch.

    Unlike the object listing, the namespaced call is always
    used for the namespaced resources.

    If the subresource is specified (usually, ``"status"``), the patch is sent
    to that subresource's endpoint, so that the fields are not ignored there.

    Returns the patched body as reported by the server. The absent objects
    are escalated as `errors.APINotFoundError`: it is the caller's job
    to decide what the absence means in their context.
    """
    patched_body: bodies.RawBody = await api.patch(
        url=resource.get_url(namespace=namespace, name=name, subresource=subresource),
        headers={'Content-Type': 'application/merge-patch+json'},
        payload=patch,
        context=context,
        settings=settings,
        logger=logger,
    )
    return patched_body
