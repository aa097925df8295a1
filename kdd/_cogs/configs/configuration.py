"""
All configuration flags, options, settings to fine-tune the datastore.

All settings are grouped semantically just for convenience
(instead of a flat mega-object with all the values in it).

Some of the settings are flags, some are scalars, some are optional,
some are not (but all of them have reasonable defaults).

The settings object is created once per datastore client and passed down
to every layer that needs it: the API wrappers, the resource clients,
the bootstrap routines, and the sync sessions.
"""
import dataclasses
from typing import Iterable, Optional, Union


@dataclasses.dataclass
class NetworkingSettings:

    request_timeout: Optional[float] = 5 * 60  # == aiohttp.client.DEFAULT_TIMEOUT
    """
    A timeout for the whole request, including the connection establishment,
    sending the request, and reading the response.
    """

    connect_timeout: Optional[float] = None
    """
    A timeout for the connection establishment only (both TCP & TLS).
    """

    error_backoffs: Union[float, Iterable[float]] = (1, 1, 2, 3, 5, 8, 13, 21)
    """
    Back-off intervals in case of retryable API errors (5xx, connection errors).

    It can be a single number, a finite sequence of numbers, or an iterator.
    The number of intervals defines the number of retries;
    an empty sequence disables the retries completely.
    """


@dataclasses.dataclass
class InitializationSettings:

    poll_interval: float = 1.0
    """
    How often to re-attempt the registrations and the cluster-type marking
    while the datastore is being initialized. The first attempt is immediate.
    """

    timeout: float = 30.0
    """
    For how long (since the start of each initialization stage) to keep
    retrying before giving up and escalating the last seen error.
    """

    cluster_type_name: str = 'ClusterType'
    """
    The global config entry that carries the comma-separated cluster types.
    """

    cluster_type_marker: str = 'KDD'
    """
    The token to be present in the cluster types once the datastore is ready.
    """


@dataclasses.dataclass
class SyncingSettings:

    poll_interval: float = 5.0
    """
    How long to sleep between the snapshots of the sync sessions.
    """

    disable_node_poll: bool = False
    """
    Should the nodes be excluded from the sync sessions?
    Large clusters can prefer to not re-list all the nodes every few seconds.
    """


@dataclasses.dataclass
class DatastoreSettings:
    networking: NetworkingSettings = dataclasses.field(default_factory=NetworkingSettings)
    initialization: InitializationSettings = dataclasses.field(default_factory=InitializationSettings)
    syncing: SyncingSettings = dataclasses.field(default_factory=SyncingSettings)
