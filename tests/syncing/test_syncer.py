import asyncio

import pytest

from kdd._cogs.structs.keys import GlobalConfigKey, GlobalConfigListOptions, HostConfigListOptions, \
                                   KVPair, NodeBGPPeerListOptions, NodeKey, NodeListOptions, \
                                   ReadyFlagKey, ReadyFlagListOptions
from kdd._core.datastore.syncing import NODE_BACKED_OPTIONS, SYNCED_OPTIONS, SyncStatus, Syncer, \
                                        Update, UpdateType, diff_snapshots
from kdd._core.errors import DatastoreError

READY = KVPair(key=ReadyFlagKey(), value=True)
CONFIG_V1 = KVPair(key=GlobalConfigKey(name='LogLevel'), value='info', revision='1')
CONFIG_V2 = KVPair(key=GlobalConfigKey(name='LogLevel'), value='debug', revision='2')
NODE = KVPair(key=NodeKey(hostname='node1'), value=None, revision='1')


class FakeDatastore:
    """ A datastore client with a mutable content, listed by the options' types. """

    def __init__(self):
        self.content = {}
        self.error = None
        self.listed = []

    async def list(self, options):
        self.listed.append(options)
        if self.error is not None:
            raise self.error
        return list(self.content.get(type(options), []))


@pytest.fixture()
def datastore():
    datastore = FakeDatastore()
    datastore.content[ReadyFlagListOptions] = [READY]
    return datastore


@pytest.fixture()
def callbacks(mocker):
    callbacks = mocker.Mock()
    callbacks.on_status_updated = mocker.Mock()
    callbacks.on_updates = mocker.Mock()
    return callbacks


@pytest.fixture()
def syncer(datastore, callbacks, settings, logger):
    return Syncer(datastore, callbacks, settings=settings, logger=logger)


def statuses(callbacks):
    return [c[0][0] for c in callbacks.on_status_updated.call_args_list]


def test_diff_of_new_updated_deleted():
    old = {CONFIG_V1.key: CONFIG_V1, NODE.key: NODE}
    new = {CONFIG_V2.key: CONFIG_V2, READY.key: READY}
    assert diff_snapshots(old, new) == [
        Update(kvp=CONFIG_V2, update_type=UpdateType.UPDATED),
        Update(kvp=READY, update_type=UpdateType.NEW),
        Update(kvp=NODE, update_type=UpdateType.DELETED),
    ]


def test_diff_of_unchanged_snapshots():
    snapshot = {CONFIG_V1.key: CONFIG_V1}
    assert diff_snapshots(snapshot, dict(snapshot)) == []


def test_diff_detects_value_changes_without_revisions():
    old = KVPair(key=ReadyFlagKey(), value=False)
    assert diff_snapshots({old.key: old}, {READY.key: READY}) == [
        Update(kvp=READY, update_type=UpdateType.UPDATED),
    ]


def test_all_kinds_are_synced_by_default(syncer):
    assert list(syncer.synced_options) == list(SYNCED_OPTIONS)
    assert NodeListOptions() in syncer.synced_options


def test_node_kinds_are_not_synced_when_disabled(datastore, callbacks, settings, logger):
    settings.syncing.disable_node_poll = True
    syncer = Syncer(datastore, callbacks, settings=settings, logger=logger)
    assert NodeListOptions() not in syncer.synced_options
    assert NodeBGPPeerListOptions() not in syncer.synced_options
    assert HostConfigListOptions() not in syncer.synced_options
    assert len(syncer.synced_options) == len(SYNCED_OPTIONS) - len(NODE_BACKED_OPTIONS)


async def test_first_round_reports_everything_as_new(syncer, datastore, callbacks):
    datastore.content[GlobalConfigListOptions] = [CONFIG_V1]

    await syncer.sync_once()

    assert statuses(callbacks) == [SyncStatus.RESYNC_IN_PROGRESS, SyncStatus.IN_SYNC]
    assert callbacks.on_updates.call_count == 1
    updates = callbacks.on_updates.call_args[0][0]
    assert {update.kvp for update in updates} == {READY, CONFIG_V1}
    assert {update.update_type for update in updates} == {UpdateType.NEW}


async def test_next_rounds_report_only_the_changes(syncer, datastore, callbacks):
    datastore.content[GlobalConfigListOptions] = [CONFIG_V1]
    await syncer.sync_once()
    callbacks.reset_mock()

    datastore.content[GlobalConfigListOptions] = [CONFIG_V2]
    await syncer.sync_once()

    assert statuses(callbacks) == []
    assert callbacks.on_updates.call_args[0][0] == [Update(kvp=CONFIG_V2, update_type=UpdateType.UPDATED)]


async def test_deletions_are_reported(syncer, datastore, callbacks):
    datastore.content[GlobalConfigListOptions] = [CONFIG_V1]
    await syncer.sync_once()
    callbacks.reset_mock()

    datastore.content[GlobalConfigListOptions] = []
    await syncer.sync_once()

    assert callbacks.on_updates.call_args[0][0] == [Update(kvp=CONFIG_V1, update_type=UpdateType.DELETED)]


async def test_no_changes_are_not_reported(syncer, callbacks):
    await syncer.sync_once()
    callbacks.reset_mock()

    await syncer.sync_once()

    assert not callbacks.on_updates.called
    assert not callbacks.on_status_updated.called


async def test_failed_snapshots_are_not_reported(syncer, datastore, callbacks, assert_logs):
    datastore.error = DatastoreError(None, "boo")

    await syncer.sync_once()

    assert statuses(callbacks) == [SyncStatus.RESYNC_IN_PROGRESS]
    assert not callbacks.on_updates.called
    assert_logs([r"Failed to take a snapshot of the datastore; will retry: boo"])


async def test_changes_are_reported_after_the_recovery(syncer, datastore, callbacks):
    datastore.error = DatastoreError(None, "boo")
    await syncer.sync_once()
    datastore.error = None
    await syncer.sync_once()

    assert statuses(callbacks) == [SyncStatus.RESYNC_IN_PROGRESS,
                                   SyncStatus.RESYNC_IN_PROGRESS,
                                   SyncStatus.IN_SYNC]
    assert callbacks.on_updates.call_args[0][0] == [Update(kvp=READY, update_type=UpdateType.NEW)]


async def test_node_kinds_are_not_listed_when_disabled(datastore, callbacks, settings, logger):
    settings.syncing.disable_node_poll = True
    syncer = Syncer(datastore, callbacks, settings=settings, logger=logger)

    await syncer.sync_once()

    assert NodeListOptions() not in datastore.listed
    assert GlobalConfigListOptions() in datastore.listed


@pytest.mark.looptime
async def test_session_polls_at_intervals(looptime, syncer, datastore, callbacks, settings):
    settings.syncing.poll_interval = 5

    syncer.start()
    await asyncio.sleep(12)
    await syncer.stop()

    assert statuses(callbacks) == [SyncStatus.WAIT_FOR_DATASTORE,
                                   SyncStatus.RESYNC_IN_PROGRESS,
                                   SyncStatus.IN_SYNC]
    rounds = datastore.listed.count(ReadyFlagListOptions())
    assert rounds == 3  # at 0, 5, 10
    assert looptime == 12


@pytest.mark.looptime
async def test_session_cannot_be_started_twice(looptime, syncer):
    syncer.start()
    try:
        with pytest.raises(RuntimeError):
            syncer.start()
    finally:
        await syncer.stop()


async def test_stopping_of_an_unstarted_session(syncer):
    await syncer.stop()


async def test_sessions_are_created_by_the_datastore_client(client, callbacks):
    syncer = client.syncer(callbacks)
    assert isinstance(syncer, Syncer)
    assert list(syncer.synced_options) == list(SYNCED_OPTIONS)
