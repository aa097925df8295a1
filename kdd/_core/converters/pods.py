"""
Pods as workload endpoints.

Not every pod is a workload endpoint: only those which are networked by us
and are far enough in their lifecycle to have an address. Host-networked pods
use the node's own interfaces; unscheduled pods have no node to live on;
finished pods have released their addresses; and pods with no address yet
have nothing to route to: all of them are invisible to the datastore.
"""
import hashlib
import ipaddress
from typing import List

from kdd._cogs.structs import bodies, keys, values
from kdd._core import errors
from kdd._core.converters import names, selectors

INTERFACE_PREFIX = 'cali'
TERMINAL_PHASES = frozenset({'Succeeded', 'Failed'})


def is_ready_pod(pod: bodies.RawBody) -> bool:
    spec = pod.get('spec', {})
    status = pod.get('status', {})
    if spec.get('hostNetwork', False):
        return False
    if not spec.get('nodeName'):
        return False
    if status.get('phase') in TERMINAL_PHASES:
        return False
    if not status.get('podIP'):
        return False
    return True


def build_interface_name(workload_id: str) -> str:
    # Linux limits the interface names to 15 characters.
    digest = hashlib.sha1(workload_id.encode('utf-8')).hexdigest()
    return f'{INTERFACE_PREFIX}{digest[:11]}'


def pod_to_workload_endpoint(pod: bodies.RawBody) -> keys.KVPair[values.WorkloadEndpoint]:
    namespace = bodies.get_namespace(pod)
    workload_id = names.build_workload_id(namespace, bodies.get_name(pod))

    pod_ip = pod.get('status', {}).get('podIP')
    ipv4_nets: List[ipaddress.IPv4Network] = []
    ipv6_nets: List[ipaddress.IPv6Network] = []
    if pod_ip:
        try:
            address = ipaddress.ip_address(pod_ip)
        except ValueError as e:
            raise errors.DecodeError(workload_id, f"Invalid pod IP {pod_ip!r} of {workload_id!r}") from e
        if isinstance(address, ipaddress.IPv4Address):
            ipv4_nets.append(ipaddress.IPv4Network(address))
        else:
            ipv6_nets.append(ipaddress.IPv6Network(address))

    labels = dict(bodies.get_labels(pod))
    labels[selectors.NAMESPACE_LABEL] = namespace

    return keys.KVPair(
        key=keys.WorkloadEndpointKey(
            hostname=pod.get('spec', {}).get('nodeName', ''),
            orchestrator_id=names.ORCHESTRATOR_ID,
            workload_id=workload_id,
            endpoint_id=names.ENDPOINT_ID,
        ),
        value=values.WorkloadEndpoint(
            state='active',
            name=build_interface_name(workload_id),
            profile_ids=[names.build_profile_name(namespace)],
            ipv4_nets=ipv4_nets,
            ipv6_nets=ipv6_nets,
            labels=labels,
        ),
        revision=bodies.get_revision(pod),
    )
