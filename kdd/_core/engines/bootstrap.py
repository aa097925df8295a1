"""
The one-time initialization of the datastore in a cluster.

It goes in two stages, each retried until success or a fixed deadline:

* The registration of the custom resources that store the datastore's kinds.
  All of them are registered concurrently, and all of them are awaited
  even if some fail; the error of the last failed one is escalated.
* The convergence of the cluster type marker in the global config, so that
  other components of the cluster know which datastore they deal with.
  The existing value is extended, never overwritten.

If a stage does not succeed in time, it fails with `errors.InitializationError`,
with the last seen failure chained as its cause.
"""
import asyncio
import logging
from typing import Collection, Optional

from kdd._cogs.aiokits import aiopolling
from kdd._cogs.configs import configuration
from kdd._cogs.helpers import typedefs
from kdd._cogs.structs import keys
from kdd._core import errors
from kdd._core.resources import base, globalconfigs

logger = logging.getLogger(__name__)


async def register_resources(
        clients: Collection[base.ResourceClient],  # type: ignore[type-arg]
        *,
        logger: typedefs.Logger = logger,
) -> None:
    tasks = [asyncio.create_task(client.ensure_initialized()) for client in clients]
    last_error: Optional[Exception] = None
    for future in asyncio.as_completed(tasks):
        try:
            await future
        except Exception as e:
            last_error = e
    if last_error is not None:
        logger.debug(f"Registration of {len(tasks)} resources has failed: {last_error}")
        raise last_error


async def ensure_custom_resources(
        clients: Collection[base.ResourceClient],  # type: ignore[type-arg]
        *,
        settings: configuration.DatastoreSettings,
        logger: typedefs.Logger = logger,
) -> None:

    async def attempt() -> bool:
        await register_resources(clients, logger=logger)
        return True

    stage = "register the custom resources"
    try:
        await aiopolling.poll_immediate(
            attempt,
            interval=settings.initialization.poll_interval,
            timeout=settings.initialization.timeout,
            title='registration',
            logger=logger,
        )
    except Exception as e:
        raise errors.InitializationError(stage) from e


def add_marker(value: Optional[str], marker: str) -> str:
    """
    Add the marker token to a comma-separated list of tokens, unless it is there.

    The absent value (``None``) becomes the marker alone. The existing values,
    even empty ones, are always extended after a comma.

    >>> add_marker(None, 'KDD')
    'KDD'
    >>> add_marker('', 'KDD')
    ',KDD'
    >>> add_marker('foo', 'KDD')
    'foo,KDD'
    >>> add_marker('foo,KDD', 'KDD')
    'foo,KDD'
    """
    if value is None:
        return marker
    tokens = [token.strip() for token in value.split(',')]
    if marker in tokens:
        return value
    return f"{value},{marker}"


async def converge_cluster_type(
        client: globalconfigs.GlobalConfigClient,
        *,
        settings: configuration.DatastoreSettings,
        logger: typedefs.Logger = logger,
) -> bool:
    """
    Make one attempt to have the cluster type marked as ours.

    Returns ``True`` when done, ``False`` if it should be retried.
    The reading errors are escalated (and retried by the polling too).
    """
    key = keys.GlobalConfigKey(name=settings.initialization.cluster_type_name)
    existing: Optional[str]
    try:
        kvp = await client.get(key)
    except errors.ResourceDoesNotExist:
        existing = None
    else:
        existing = kvp.value

    value = add_marker(existing, settings.initialization.cluster_type_marker)
    logger.debug(f"Setting {key.name} to {value!r}")
    try:
        await client.apply(keys.KVPair(key=key, value=value))
    except errors.DatastoreError as e:
        logger.warning(f"Failed to apply {key.name}: {e}")
        return False
    return True


async def ensure_cluster_type(
        client: globalconfigs.GlobalConfigClient,
        *,
        settings: configuration.DatastoreSettings,
        logger: typedefs.Logger = logger,
) -> None:

    async def attempt() -> bool:
        return await converge_cluster_type(client, settings=settings, logger=logger)

    stage = "set the cluster type"
    try:
        await aiopolling.poll_immediate(
            attempt,
            interval=settings.initialization.poll_interval,
            timeout=settings.initialization.timeout,
            title='cluster type convergence',
            logger=logger,
        )
    except Exception as e:
        raise errors.InitializationError(stage) from e
