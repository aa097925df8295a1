"""
Sync sessions: keep the consumers in sync with the datastore's content.

The session is a snapshot poller: every round lists all the synced kinds
via the datastore client, compares the snapshot with the previous one
(by keys and revisions), and reports the differences to the callbacks.
The very first round reports everything as new; once it is done,
the session is reported as in sync (only once, not on every round).

The sessions are created only by the datastore client (see `KubeClient.syncer`),
and are started/stopped explicitly::

    syncer = client.syncer(callbacks)
    syncer.start()
    ...
    await syncer.stop()
"""
import asyncio
import dataclasses
import enum
import logging
from typing import TYPE_CHECKING, Dict, List, Optional, Sequence

from typing_extensions import Protocol

from kdd._cogs.aiokits import aiotasks
from kdd._cogs.configs import configuration
from kdd._cogs.helpers import typedefs
from kdd._cogs.structs import keys
from kdd._core import errors

if TYPE_CHECKING:
    from kdd._core.datastore import client as client_

logger = logging.getLogger(__name__)


class SyncStatus(enum.Enum):
    WAIT_FOR_DATASTORE = 'wait-for-datastore'
    RESYNC_IN_PROGRESS = 'resync-in-progress'
    IN_SYNC = 'in-sync'


class UpdateType(enum.Enum):
    NEW = 'new'
    UPDATED = 'updated'
    DELETED = 'deleted'


@dataclasses.dataclass(frozen=True)
class Update:
    kvp: keys.AnyKVPair
    update_type: UpdateType


class SyncCallbacks(Protocol):
    def on_status_updated(self, status: SyncStatus) -> None: ...
    def on_updates(self, updates: List[Update]) -> None: ...


Snapshot = Dict[keys.Key, keys.AnyKVPair]

NODE_BACKED_OPTIONS: Sequence[keys.ListOptions] = (
    keys.NodeListOptions(),
    keys.NodeBGPPeerListOptions(),
    keys.HostConfigListOptions(),
)
SYNCED_OPTIONS: Sequence[keys.ListOptions] = (
    keys.ReadyFlagListOptions(),
    keys.GlobalConfigListOptions(),
    keys.IPPoolListOptions(),
    keys.GlobalBGPPeerListOptions(),
    keys.ProfileListOptions(),
    keys.PolicyListOptions(),
    keys.WorkloadEndpointListOptions(),
) + tuple(NODE_BACKED_OPTIONS)


def diff_snapshots(old: Snapshot, new: Snapshot) -> List[Update]:
    updates: List[Update] = []
    for key, kvp in new.items():
        if key not in old:
            updates.append(Update(kvp=kvp, update_type=UpdateType.NEW))
        elif old[key].revision != kvp.revision or old[key].value != kvp.value:
            updates.append(Update(kvp=kvp, update_type=UpdateType.UPDATED))
    for key, kvp in old.items():
        if key not in new:
            updates.append(Update(kvp=kvp, update_type=UpdateType.DELETED))
    return updates


class Syncer:

    def __init__(
            self,
            client: "client_.KubeClient",
            callbacks: SyncCallbacks,
            *,
            settings: configuration.DatastoreSettings,
            logger: typedefs.Logger = logger,
    ) -> None:
        super().__init__()
        self._client = client
        self._callbacks = callbacks
        self._settings = settings
        self._logger = logger
        self._task: Optional[aiotasks.Task] = None
        self._snapshot: Snapshot = {}
        self._in_sync = False

    @property
    def synced_options(self) -> Sequence[keys.ListOptions]:
        if self._settings.syncing.disable_node_poll:
            return [options for options in SYNCED_OPTIONS if options not in NODE_BACKED_OPTIONS]
        return SYNCED_OPTIONS

    def start(self) -> None:
        if self._task is not None:
            raise RuntimeError("The sync session is already started.")
        self._task = aiotasks.create_guarded_task(
            coro=self.run(),
            name='sync session',
            cancellable=True,
            logger=self._logger,
        )

    async def stop(self) -> None:
        if self._task is not None:
            await aiotasks.stop([self._task], title='sync session', logger=self._logger)
            self._task = None

    async def run(self) -> None:
        self._callbacks.on_status_updated(SyncStatus.WAIT_FOR_DATASTORE)
        while True:
            await self.sync_once()
            await asyncio.sleep(self._settings.syncing.poll_interval)

    async def sync_once(self) -> None:
        """
        Make one snapshot and report the changes since the previous one.

        If the snapshot fails, nothing is reported and the previous snapshot
        is kept, so that the changes are reported on the next successful round.
        """
        if not self._in_sync:
            self._callbacks.on_status_updated(SyncStatus.RESYNC_IN_PROGRESS)

        try:
            snapshot = await self.take_snapshot()
        except errors.DatastoreError as e:
            self._logger.warning(f"Failed to take a snapshot of the datastore; will retry: {e}")
            return

        updates = diff_snapshots(self._snapshot, snapshot)
        self._snapshot = snapshot
        if updates:
            self._logger.debug(f"Reporting {len(updates)} updates.")
            self._callbacks.on_updates(updates)

        if not self._in_sync:
            self._in_sync = True
            self._callbacks.on_status_updated(SyncStatus.IN_SYNC)

    async def take_snapshot(self) -> Snapshot:
        snapshot: Snapshot = {}
        for options in self.synced_options:
            for kvp in await self._client.list(options):
                snapshot[kvp.key] = kvp
        return snapshot
