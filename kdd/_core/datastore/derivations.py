"""
The derived kinds: computed from the native resources on every read.

Nothing is stored for them: profiles come from the namespaces, workload
endpoints from the pods, policies from the network policies (plus the system
network policies of our own), host configs from the nodes. The ready flag
is a constant, since the Kubernetes API is the source of truth and is always
"ready" as long as it is reachable.

All of them are read-only, except that the workload endpoints accept the pod
IP assignments (as done by the IPAM plugins in the absence of the kubelet's
own reporting).
"""
from typing import List

from kdd._cogs.clients import auth, fetching, patching
from kdd._cogs.configs import configuration
from kdd._cogs.helpers import typedefs
from kdd._cogs.structs import keys, references, values
from kdd._core import errors
from kdd._core.converters import names, namespaces, networkpolicies, nodes, pods
from kdd._core.resources import base, systempolicies


async def get_profile(
        key: keys.ProfileKey,
        *,
        context: auth.APIContext,
        settings: configuration.DatastoreSettings,
        logger: typedefs.Logger,
) -> keys.KVPair[values.Profile]:
    if not key.name:
        raise errors.NameDecodeError(key, "Missing profile name.")
    namespace = names.parse_profile_name(key.name)
    with errors.translated(key):
        body = await fetching.read_obj(
            context=context,
            settings=settings,
            resource=references.NAMESPACES,
            name=namespace,
            logger=logger,
        )
    return namespaces.namespace_to_profile(body)


async def list_profiles(
        options: keys.ProfileListOptions,
        *,
        context: auth.APIContext,
        settings: configuration.DatastoreSettings,
        logger: typedefs.Logger,
) -> List[keys.KVPair[values.Profile]]:
    if options.name:
        try:
            kvp = await get_profile(keys.ProfileKey(name=options.name),
                                    context=context, settings=settings, logger=logger)
        except errors.DatastoreError as e:
            logger.debug(f"Listing the profile {options.name!r} found nothing: {e}")
            return []
        return [kvp]

    with errors.translated(options):
        objs, _ = await fetching.list_objs(
            context=context,
            settings=settings,
            resource=references.NAMESPACES,
            logger=logger,
        )
    return [namespaces.namespace_to_profile(obj) for obj in objs]


async def get_workload_endpoint(
        key: keys.WorkloadEndpointKey,
        *,
        context: auth.APIContext,
        settings: configuration.DatastoreSettings,
        logger: typedefs.Logger,
) -> keys.KVPair[values.WorkloadEndpoint]:
    namespace, pod_name = names.parse_workload_id(key.workload_id)
    with errors.translated(key):
        body = await fetching.read_obj(
            context=context,
            settings=settings,
            resource=references.PODS,
            namespace=references.NamespaceName(namespace),
            name=pod_name,
            logger=logger,
        )
    if not pods.is_ready_pod(body):
        raise errors.ResourceDoesNotExist(key)
    return pods.pod_to_workload_endpoint(body)


async def list_workload_endpoints(
        options: keys.WorkloadEndpointListOptions,
        *,
        context: auth.APIContext,
        settings: configuration.DatastoreSettings,
        logger: typedefs.Logger,
) -> List[keys.KVPair[values.WorkloadEndpoint]]:
    if options.workload_id:
        key = keys.WorkloadEndpointKey(
            hostname=options.hostname,
            orchestrator_id=options.orchestrator_id,
            workload_id=options.workload_id,
            endpoint_id=options.endpoint_id,
        )
        try:
            kvp = await get_workload_endpoint(key, context=context, settings=settings, logger=logger)
        except errors.ResourceDoesNotExist:
            return []
        return [kvp]

    with errors.translated(options):
        objs, _ = await fetching.list_objs(
            context=context,
            settings=settings,
            resource=references.PODS,
            logger=logger,
        )

    result: List[keys.KVPair[values.WorkloadEndpoint]] = []
    for obj in objs:
        if pods.is_ready_pod(obj):
            kvp = pods.pod_to_workload_endpoint(obj)
            assert isinstance(kvp.key, keys.WorkloadEndpointKey)
            if not options.hostname or kvp.key.hostname == options.hostname:
                result.append(kvp)
    return result


async def apply_workload_endpoint(
        kvp: keys.KVPair[values.WorkloadEndpoint],
        *,
        context: auth.APIContext,
        settings: configuration.DatastoreSettings,
        logger: typedefs.Logger,
) -> keys.KVPair[values.WorkloadEndpoint]:
    """
    Assign the workload endpoint's first IPv4 address to its pod.

    Nothing else of the workload endpoint is stored anywhere: it is derived
    from the pod. With no IPv4 addresses, there is nothing to assign.
    """
    assert isinstance(kvp.key, keys.WorkloadEndpointKey)
    if not kvp.value.ipv4_nets:
        logger.debug("No IPv4 addresses to assign to the pod; nothing to apply.")
        return kvp

    namespace, pod_name = names.parse_workload_id(kvp.key.workload_id)
    pod_ip = str(kvp.value.ipv4_nets[0].network_address)
    with errors.translated(kvp.key):
        body = await patching.patch_obj(
            context=context,
            settings=settings,
            resource=references.PODS,
            namespace=references.NamespaceName(namespace),
            name=pod_name,
            subresource='status',
            patch={'status': {'podIP': pod_ip}},
            logger=logger,
        )
    logger.debug(f"Assigned the pod IP {pod_ip} to {namespace}/{pod_name}.")
    return pods.pod_to_workload_endpoint(body)


async def get_policy(
        key: keys.PolicyKey,
        *,
        system_policies: systempolicies.SystemNetworkPolicyClient,
        context: auth.APIContext,
        settings: configuration.DatastoreSettings,
        logger: typedefs.Logger,
) -> keys.KVPair[values.Policy]:
    if not key.name:
        raise errors.NameDecodeError(key, "Missing policy name.")

    if key.name.startswith(names.NETWORK_POLICY_PREFIX):
        try:
            namespace, name = names.parse_network_policy_name(key.name)
        except errors.NameDecodeError as e:
            raise errors.ResourceDoesNotExist(key) from e
        with errors.translated(key):
            body = await fetching.read_obj(
                context=context,
                settings=settings,
                resource=references.NETWORK_POLICIES,
                namespace=references.NamespaceName(namespace),
                name=name,
                logger=logger,
            )
        return networkpolicies.network_policy_to_policy(body)

    elif key.name.startswith(names.SYSTEM_NETWORK_POLICY_PREFIX):
        return await system_policies.get(key)

    else:
        raise errors.ResourceDoesNotExist(key)


async def list_policies(
        options: keys.PolicyListOptions,
        *,
        system_policies: systempolicies.SystemNetworkPolicyClient,
        context: auth.APIContext,
        settings: configuration.DatastoreSettings,
        logger: typedefs.Logger,
) -> List[keys.KVPair[values.Policy]]:
    # All policies of both origins are in the default tier.
    if options.tier and options.tier != keys.DEFAULT_TIER:
        return []

    if options.name:
        try:
            kvp = await get_policy(keys.PolicyKey(name=options.name), system_policies=system_policies,
                                   context=context, settings=settings, logger=logger)
        except errors.ResourceDoesNotExist:
            return []
        return [kvp]

    with errors.translated(options):
        objs, _ = await fetching.list_objs(
            context=context,
            settings=settings,
            resource=references.NETWORK_POLICIES,
            logger=logger,
        )
    result = [networkpolicies.network_policy_to_policy(obj) for obj in objs]
    system_kvps, _ = await system_policies.list(keys.PolicyListOptions())
    result.extend(system_kvps)
    return result


async def get_host_config(
        key: keys.HostConfigKey,
        *,
        context: auth.APIContext,
        settings: configuration.DatastoreSettings,
        logger: typedefs.Logger,
) -> keys.KVPair[str]:
    if key.name != nodes.TUNNEL_ADDRESS_CONFIG:
        raise errors.ResourceDoesNotExist(key)

    with errors.translated(key):
        body = await fetching.read_obj(
            context=context,
            settings=settings,
            resource=references.NODES,
            name=base.require_name(key, key.hostname),
            logger=logger,
        )
    kvp = nodes.node_to_host_config(body)
    if kvp is None:
        raise errors.ResourceDoesNotExist(key)
    return kvp


async def list_host_configs(
        options: keys.HostConfigListOptions,
        *,
        context: auth.APIContext,
        settings: configuration.DatastoreSettings,
        logger: typedefs.Logger,
) -> List[keys.KVPair[str]]:
    if options.name and options.name != nodes.TUNNEL_ADDRESS_CONFIG:
        return []

    # A missing node is an error here; only its missing or malformed subnet means "nothing".
    if options.hostname:
        with errors.translated(options):
            body = await fetching.read_obj(
                context=context,
                settings=settings,
                resource=references.NODES,
                name=options.hostname,
                logger=logger,
            )
        try:
            kvp_or_none = nodes.node_to_host_config(body)
        except errors.DecodeError as e:
            logger.debug(f"Listing the host config of {options.hostname!r} found nothing: {e}")
            return []
        return [kvp_or_none] if kvp_or_none is not None else []

    with errors.translated(options):
        objs, _ = await fetching.list_objs(
            context=context,
            settings=settings,
            resource=references.NODES,
            logger=logger,
        )

    result: List[keys.KVPair[str]] = []
    for obj in objs:
        try:
            kvp_or_none = nodes.node_to_host_config(obj)
        except errors.DecodeError as e:
            logger.warning(f"Skipping the host config of a node: {e}")
            continue
        if kvp_or_none is not None:
            result.append(kvp_or_none)
    return result


def get_ready_flag(key: keys.ReadyFlagKey) -> keys.KVPair[bool]:
    return keys.KVPair(key=key, value=True)


def list_ready_flags(options: keys.ReadyFlagListOptions) -> List[keys.KVPair[bool]]:
    return [get_ready_flag(keys.ReadyFlagKey())]
