from typing import Any

from kdd._cogs.clients import api, auth
from kdd._cogs.configs import configuration
from kdd._cogs.helpers import typedefs
from kdd._cogs.structs import references


async def delete_obj(
        *,
        context: auth.APIContext,
        settings: configuration.DatastoreSettings,
        resource: references.Resource,
        namespace: references.Namespace = None,
        name: str,
        logger: typedefs.Logger,
) -> Any:
    """
    Delete an object; fail with `errors.APINotFoundError` if it is absent.

    Returns whatever the API returns: either the deleted object's last state,
    or a ``Status`` object, depending on the resource and the API version.
    """
    return await api.delete(
        url=resource.get_url(namespace=namespace, name=name),
        context=context,
        settings=settings,
        logger=logger,
    )
