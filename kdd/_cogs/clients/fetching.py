from typing import Collection, List, Optional, Tuple

from kdd._cogs.clients import api, auth
from kdd._cogs.configs import configuration
from kdd._cogs.helpers import typedefs
from kdd._cogs.structs import bodies, references


async def read_obj(
        *,
        context: auth.APIContext,
        settings: configuration.DatastoreSettings,
        resource: references.Resource,
        namespace: references.Namespace = None,
        name: str,
        logger: typedefs.Logger,
) -> bodies.RawBody:
    """
    Read one specific object of a specific resource type.

    Unlike the listing, the absence of the object is not hidden:
    `errors.APINotFoundError` is escalated to the caller as is.
    """
    body: bodies.RawBody = await api.get(
        url=resource.get_url(namespace=namespace, name=name),
        context=context,
        settings=settings,
        logger=logger,
    )
    return body


async def list_objs(
        *,
        context: auth.APIContext,
        settings: configuration.DatastoreSettings,
        resource: references.Resource,
        namespace: references.Namespace = None,
        logger: typedefs.Logger,
) -> Tuple[Collection[bodies.RawBody], Optional[str]]:
    """
    List the objects of specific resource type.

    The cluster-wide call is used when the namespace is not specified,
    which, for the namespaced resources, means all the namespaces at once.

    The objects are returned in the same order as the API returned them,
    together with the list's resource version.
    """
    rsp = await api.get(
        url=resource.get_url(namespace=namespace),
        context=context,
        settings=settings,
        logger=logger,
    )

    items: List[bodies.RawBody] = []
    resource_version = rsp.get('metadata', {}).get('resourceVersion', None)
    for item in rsp.get('items', []):
        if 'kind' in rsp:
            item.setdefault('kind', rsp['kind'][:-4] if rsp['kind'][-4:] == 'List' else rsp['kind'])
        if 'apiVersion' in rsp:
            item.setdefault('apiVersion', rsp['apiVersion'])
        items.append(item)

    return items, resource_version
