"""
The datastore client: a uniform key/value facade over the Kubernetes API.

The key (or the list options) of every call defines where the call goes:
either to a resource client of an independently stored kind, or to a derived
handler of a kind computed from the native resources, or nowhere at all
(`errors.OperationNotSupported` or an empty listing). See the table below.

=====================================  =======  =======  ==========  =======  =======  =====
Kind                                   Create   Update   Apply       Delete   Get      List
=====================================  =======  =======  ==========  =======  =======  =====
GlobalConfig, IPPool, Node,            client   client   client      client   client   client
GlobalBGPPeer, NodeBGPPeer
WorkloadEndpoint                       --       --       pod IP      --       derived  derived
Status reports (4 kinds)               --       --       dropped     --       --       empty
Profile, Policy, HostConfig, ReadyFlag --       --       --          --       derived  derived
Anything else                          --       --       --          --       --       empty
=====================================  =======  =======  ==========  =======  =======  =====

The client and its resource clients are constructed once, and never change.
"""
import dataclasses
import logging
from typing import Any, List, Optional

from kdd._cogs.clients import auth, login
from kdd._cogs.configs import configuration
from kdd._cogs.structs import credentials, keys
from kdd._core import errors
from kdd._core.datastore import derivations, syncing
from kdd._core.engines import bootstrap, loggers
from kdd._core.resources import base, globalbgppeers, globalconfigs, ippools, \
                                nodebgppeers, nodes, systempolicies

logger = logging.getLogger(__name__)


class KubeClient:

    def __init__(
            self,
            context: auth.APIContext,
            *,
            settings: Optional[configuration.DatastoreSettings] = None,
    ) -> None:
        super().__init__()
        self.context = context
        self.settings = settings if settings is not None else configuration.DatastoreSettings()
        self.global_configs = globalconfigs.GlobalConfigClient(context=context, settings=self.settings)
        self.ip_pools = ippools.IPPoolClient(context=context, settings=self.settings)
        self.global_bgp_peers = globalbgppeers.GlobalBGPPeerClient(context=context, settings=self.settings)
        self.system_policies = systempolicies.SystemNetworkPolicyClient(context=context, settings=self.settings)
        self.nodes = nodes.NodeClient(context=context, settings=self.settings)
        self.node_bgp_peers = nodebgppeers.NodeBGPPeerClient(context=context, settings=self.settings)

    @classmethod
    def from_config(
            cls,
            config: Optional[credentials.KubeConfig] = None,
            *,
            settings: Optional[configuration.DatastoreSettings] = None,
    ) -> "KubeClient":
        """
        Build the client from the connection config (as the users see it).

        It must be called in the event loop where the client will be used:
        the HTTP session is bound to the running loop.
        """
        config = config if config is not None else credentials.KubeConfig()
        settings = settings if settings is not None else configuration.DatastoreSettings()
        if config.disable_node_poll:
            syncing_settings = dataclasses.replace(settings.syncing, disable_node_poll=True)
            settings = dataclasses.replace(settings, syncing=syncing_settings)
        info = login.login(config)
        return cls(auth.APIContext(info), settings=settings)

    async def close(self) -> None:
        await self.context.close()

    @property
    def registrable_clients(self) -> List[base.CustomResourceClient]:  # type: ignore[type-arg]
        return [self.ip_pools, self.system_policies, self.global_bgp_peers, self.global_configs]

    async def ensure_initialized(self) -> None:
        """
        Register all the custom resources and mark the cluster type as ours.

        Fails with `errors.InitializationError` if not done within the time limits.
        """
        logger.info("Initializing the datastore.")
        await bootstrap.ensure_custom_resources(self.registrable_clients, settings=self.settings)
        await bootstrap.ensure_cluster_type(self.global_configs, settings=self.settings)
        logger.info("The datastore is initialized.")

    async def ensure_node_initialized(self, nodename: str) -> None:
        # The nodes are managed by the kubelets, there is nothing to prepare.
        logger.debug(f"Skipping the initialization of the node {nodename!r}.")

    def syncer(self, callbacks: syncing.SyncCallbacks) -> syncing.Syncer:
        return syncing.Syncer(self, callbacks, settings=self.settings)

    async def create(self, kvp: keys.AnyKVPair) -> keys.AnyKVPair:
        klogger = loggers.KeyLogger(logger, key=kvp.key)
        klogger.debug("Performing 'Create'.")
        client = self._find_stored_client(kvp.key)
        if client is None:
            raise self._unsupported(kvp.key, 'Create', logger=klogger)
        return await client.create(kvp)

    async def update(self, kvp: keys.AnyKVPair) -> keys.AnyKVPair:
        klogger = loggers.KeyLogger(logger, key=kvp.key)
        klogger.debug("Performing 'Update'.")
        client = self._find_stored_client(kvp.key)
        if client is None:
            raise self._unsupported(kvp.key, 'Update', logger=klogger)
        return await client.update(kvp)

    async def apply(self, kvp: keys.AnyKVPair) -> keys.AnyKVPair:
        klogger = loggers.KeyLogger(logger, key=kvp.key)
        klogger.debug("Performing 'Apply'.")
        match kvp.key:
            case keys.WorkloadEndpointKey():
                return await derivations.apply_workload_endpoint(
                    kvp, context=self.context, settings=self.settings, logger=klogger)
            case (keys.ActiveStatusReportKey() | keys.LastStatusReportKey() |
                  keys.HostEndpointStatusKey() | keys.WorkloadEndpointStatusKey()):
                klogger.debug("Dropping the status report: they are not stored.")
                return kvp
            case _:
                client = self._find_stored_client(kvp.key)
                if client is None:
                    raise self._unsupported(kvp.key, 'Apply', logger=klogger)
                return await client.apply(kvp)

    async def delete(self, kvp: keys.AnyKVPair) -> keys.AnyKVPair:
        klogger = loggers.KeyLogger(logger, key=kvp.key)
        klogger.debug("Performing 'Delete'.")
        client = self._find_stored_client(kvp.key)
        if client is None:
            raise self._unsupported(kvp.key, 'Delete', logger=klogger)
        return await client.delete(kvp)

    async def get(self, key: keys.Key) -> keys.AnyKVPair:
        klogger = loggers.KeyLogger(logger, key=key)
        klogger.debug("Performing 'Get'.")
        kwargs: Any = dict(context=self.context, settings=self.settings, logger=klogger)
        match key:
            case keys.ProfileKey():
                return await derivations.get_profile(key, **kwargs)
            case keys.WorkloadEndpointKey():
                return await derivations.get_workload_endpoint(key, **kwargs)
            case keys.PolicyKey():
                return await derivations.get_policy(key, system_policies=self.system_policies, **kwargs)
            case keys.HostConfigKey():
                return await derivations.get_host_config(key, **kwargs)
            case keys.ReadyFlagKey():
                return derivations.get_ready_flag(key)
            case _:
                client = self._find_stored_client(key)
                if client is None:
                    raise self._unsupported(key, 'Get', logger=klogger)
                return await client.get(key)

    async def list(self, options: keys.ListOptions) -> List[keys.AnyKVPair]:
        klogger = loggers.KeyLogger(logger, key=options)
        klogger.debug("Performing 'List'.")
        kwargs: Any = dict(context=self.context, settings=self.settings, logger=klogger)
        match options:
            case keys.ProfileListOptions():
                return await derivations.list_profiles(options, **kwargs)
            case keys.WorkloadEndpointListOptions():
                return await derivations.list_workload_endpoints(options, **kwargs)
            case keys.PolicyListOptions():
                return await derivations.list_policies(options, system_policies=self.system_policies, **kwargs)
            case keys.HostConfigListOptions():
                return await derivations.list_host_configs(options, **kwargs)
            case keys.ReadyFlagListOptions():
                return derivations.list_ready_flags(options)
            case _:
                client = self._find_stored_client(options)
                if client is None:
                    klogger.debug("Listing nothing: the kind is not served.")
                    return []
                kvps, _ = await client.list(options)
                return kvps

    def _find_stored_client(
            self,
            identifier: object,
    ) -> Optional[base.ResourceClient]:  # type: ignore[type-arg]
        match identifier:
            case keys.GlobalConfigKey() | keys.GlobalConfigListOptions():
                return self.global_configs
            case keys.IPPoolKey() | keys.IPPoolListOptions():
                return self.ip_pools
            case keys.NodeKey() | keys.NodeListOptions():
                return self.nodes
            case keys.GlobalBGPPeerKey() | keys.GlobalBGPPeerListOptions():
                return self.global_bgp_peers
            case keys.NodeBGPPeerKey() | keys.NodeBGPPeerListOptions():
                return self.node_bgp_peers
            case _:
                return None

    @staticmethod
    def _unsupported(
            key: keys.Key,
            operation: str,
            *,
            logger: loggers.KeyLogger,
    ) -> errors.OperationNotSupported:
        logger.warning(f"Operation {operation!r} is not supported on {type(key).__name__}.")
        return errors.OperationNotSupported(key, operation=operation)
