"""
The main module of the datastore for all the exported functions & classes.
"""
# isort: skip_file

# Unlike all other places, where we import other modules and refer
# the functions via the modules, this is the library's top-level interface,
# as it is seen by the users. So, we export the individual classes.

from kdd._cogs.configs.configuration import (
    DatastoreSettings,
    NetworkingSettings,
    InitializationSettings,
    SyncingSettings,
)
from kdd._cogs.helpers.typedefs import (
    Logger,
)
from kdd._cogs.structs.credentials import (
    ConnectionInfo,
    KubeConfig,
    LoginError,
)
from kdd._cogs.structs.keys import (
    Key,
    ListOptions,
    KVPair,
    GlobalConfigKey,
    GlobalConfigListOptions,
    IPPoolKey,
    IPPoolListOptions,
    NodeKey,
    NodeListOptions,
    GlobalBGPPeerKey,
    GlobalBGPPeerListOptions,
    NodeBGPPeerKey,
    NodeBGPPeerListOptions,
    ProfileKey,
    ProfileListOptions,
    WorkloadEndpointKey,
    WorkloadEndpointListOptions,
    PolicyKey,
    PolicyListOptions,
    HostConfigKey,
    HostConfigListOptions,
    ReadyFlagKey,
    ReadyFlagListOptions,
    ActiveStatusReportKey,
    LastStatusReportKey,
    HostEndpointStatusKey,
    WorkloadEndpointStatusKey,
    HostEndpointKey,
    HostEndpointListOptions,
)
from kdd._cogs.structs.values import (
    Rule,
    ProfileRules,
    Profile,
    WorkloadEndpoint,
    Policy,
    IPPool,
    BGPPeer,
    Node,
)
from kdd._core.errors import (
    DatastoreError,
    ResourceDoesNotExist,
    ResourceAlreadyExists,
    ResourceUpdateConflict,
    ConnectionUnauthorized,
    OperationNotSupported,
    DecodeError,
    NameDecodeError,
    InitializationError,
)
from kdd._core.datastore.client import (
    KubeClient,
)
from kdd._core.datastore.syncing import (
    SyncStatus,
    UpdateType,
    Update,
    SyncCallbacks,
    Syncer,
)
from kdd._core.engines.loggers import (
    LogFormat,
    configure,
)

__all__ = [
    'DatastoreSettings', 'NetworkingSettings', 'InitializationSettings', 'SyncingSettings',
    'Logger',
    'ConnectionInfo', 'KubeConfig', 'LoginError',
    'Key', 'ListOptions', 'KVPair',
    'GlobalConfigKey', 'GlobalConfigListOptions',
    'IPPoolKey', 'IPPoolListOptions',
    'NodeKey', 'NodeListOptions',
    'GlobalBGPPeerKey', 'GlobalBGPPeerListOptions',
    'NodeBGPPeerKey', 'NodeBGPPeerListOptions',
    'ProfileKey', 'ProfileListOptions',
    'WorkloadEndpointKey', 'WorkloadEndpointListOptions',
    'PolicyKey', 'PolicyListOptions',
    'HostConfigKey', 'HostConfigListOptions',
    'ReadyFlagKey', 'ReadyFlagListOptions',
    'ActiveStatusReportKey', 'LastStatusReportKey',
    'HostEndpointStatusKey', 'WorkloadEndpointStatusKey',
    'HostEndpointKey', 'HostEndpointListOptions',
    'Rule', 'ProfileRules', 'Profile', 'WorkloadEndpoint', 'Policy', 'IPPool', 'BGPPeer', 'Node',
    'DatastoreError', 'ResourceDoesNotExist', 'ResourceAlreadyExists', 'ResourceUpdateConflict',
    'ConnectionUnauthorized', 'OperationNotSupported', 'DecodeError', 'NameDecodeError',
    'InitializationError',
    'KubeClient',
    'SyncStatus', 'UpdateType', 'Update', 'SyncCallbacks', 'Syncer',
    'LogFormat', 'configure',
]
