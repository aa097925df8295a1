"""
Kubernetes nodes as the datastore's nodes, and the per-host configs of them.

The BGP settings of a node live in the node's annotations (so that they are
deleted together with the node); everything else is read-only and comes from
the node's status and labels, as maintained by the kubelet.
"""
import ipaddress
from typing import Dict, Optional

from kdd._cogs.structs import bodies, keys, values
from kdd._core import errors

IPV4_ADDRESS_ANNOTATION = 'projectcalico.org/IPv4Address'
AS_NUMBER_ANNOTATION = 'projectcalico.org/ASNumber'

TUNNEL_ADDRESS_CONFIG = 'IpInIpTunnelAddr'


def node_to_node(node: bodies.RawBody) -> keys.KVPair[values.Node]:
    name = bodies.get_name(node)
    annotations = bodies.get_annotations(node)

    bgp_ipv4_address: Optional[ipaddress.IPv4Address] = None
    bgp_ipv4_network: Optional[ipaddress.IPv4Network] = None
    if annotations.get(IPV4_ADDRESS_ANNOTATION):
        try:
            interface = ipaddress.IPv4Interface(annotations[IPV4_ADDRESS_ANNOTATION])
        except ValueError as e:
            raise errors.DecodeError(name, f"Invalid BGP address of the node {name!r}") from e
        bgp_ipv4_address = interface.ip
        bgp_ipv4_network = interface.network

    bgp_as_number: Optional[int] = None
    if annotations.get(AS_NUMBER_ANNOTATION):
        try:
            bgp_as_number = int(annotations[AS_NUMBER_ANNOTATION])
        except ValueError as e:
            raise errors.DecodeError(name, f"Invalid AS number of the node {name!r}") from e

    return keys.KVPair(
        key=keys.NodeKey(hostname=name),
        value=values.Node(
            bgp_ipv4_address=bgp_ipv4_address,
            bgp_ipv4_network=bgp_ipv4_network,
            bgp_as_number=bgp_as_number,
            felix_ipv4=get_internal_address(node),
            labels=dict(bodies.get_labels(node)),
        ),
        revision=bodies.get_revision(node),
    )


def node_to_annotations(node: values.Node) -> Dict[str, Optional[str]]:
    """
    Render the node's BGP settings as a merge-patch of the node's annotations.

    The unset fields are rendered as ``None``, so that the merge-patch removes
    the stale annotations instead of keeping them.
    """
    ipv4_address: Optional[str] = None
    if node.bgp_ipv4_address is not None:
        prefixlen = node.bgp_ipv4_network.prefixlen if node.bgp_ipv4_network is not None else 32
        ipv4_address = f'{node.bgp_ipv4_address}/{prefixlen}'
    as_number = str(node.bgp_as_number) if node.bgp_as_number is not None else None
    return {
        IPV4_ADDRESS_ANNOTATION: ipv4_address,
        AS_NUMBER_ANNOTATION: as_number,
    }


def get_internal_address(node: bodies.RawBody) -> Optional[ipaddress.IPv4Address]:
    for address in node.get('status', {}).get('addresses') or []:
        if address.get('type') == 'InternalIP':
            try:
                return ipaddress.IPv4Address(address.get('address', ''))
            except ValueError:
                continue  # e.g. IPv6 addresses of dual-stack nodes
    return None


def get_tunnel_address(node: bodies.RawBody) -> Optional[str]:
    """
    Compute the IP-in-IP tunnel address of the node from its pod subnet.

    It is the first address after the subnet's network address, so it never
    collides with the pods' addresses allocated by the IPAM of the node.
    ``None`` means the node has no pod subnet (yet).
    """
    pod_cidr = node.get('spec', {}).get('podCIDR')
    if not pod_cidr:
        return None
    try:
        network = ipaddress.ip_network(pod_cidr, strict=False)
    except ValueError as e:
        name = bodies.get_name(node)
        raise errors.DecodeError(name, f"Invalid pod subnet {pod_cidr!r} of the node {name!r}") from e
    return str(network.network_address + 1)


def node_to_host_config(node: bodies.RawBody) -> Optional[keys.KVPair[str]]:
    address = get_tunnel_address(node)
    if address is None:
        return None
    return keys.KVPair(
        key=keys.HostConfigKey(hostname=bodies.get_name(node), name=TUNNEL_ADDRESS_CONFIG),
        value=address,
        revision=bodies.get_revision(node),
    )
