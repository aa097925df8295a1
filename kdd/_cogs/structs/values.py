"""
The values of the key-value pairs, one shape per kind.

Simple kinds use plain values: strings for the global & host configs,
a boolean for the ready flag. Structured kinds use the dataclasses below.

The structured values that are stored in the custom resources are converted
to/from the resources' ``spec`` with `to_dict`/`from_dict`, using the same
camelCase field names as the rest of the Kubernetes API.
"""
import dataclasses
import ipaddress
from typing import Any, Dict, List, Mapping, Optional

from kdd._cogs.structs import keys


@dataclasses.dataclass(frozen=True)
class Rule:
    action: str = 'allow'
    protocol: Optional[str] = None
    src_selector: str = ''
    dst_selector: str = ''
    src_nets: List[str] = dataclasses.field(default_factory=list)
    dst_nets: List[str] = dataclasses.field(default_factory=list)
    src_ports: List[Any] = dataclasses.field(default_factory=list)
    dst_ports: List[Any] = dataclasses.field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {'action': self.action}
        if self.protocol is not None:
            result['protocol'] = self.protocol
        if self.src_selector:
            result['srcSelector'] = self.src_selector
        if self.dst_selector:
            result['dstSelector'] = self.dst_selector
        if self.src_nets:
            result['srcNets'] = list(self.src_nets)
        if self.dst_nets:
            result['dstNets'] = list(self.dst_nets)
        if self.src_ports:
            result['srcPorts'] = list(self.src_ports)
        if self.dst_ports:
            result['dstPorts'] = list(self.dst_ports)
        return result

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Rule":
        return cls(
            action=data.get('action', 'allow'),
            protocol=data.get('protocol'),
            src_selector=data.get('srcSelector', ''),
            dst_selector=data.get('dstSelector', ''),
            src_nets=list(data.get('srcNets', [])),
            dst_nets=list(data.get('dstNets', [])),
            src_ports=list(data.get('srcPorts', [])),
            dst_ports=list(data.get('dstPorts', [])),
        )


@dataclasses.dataclass(frozen=True)
class ProfileRules:
    inbound_rules: List[Rule] = dataclasses.field(default_factory=list)
    outbound_rules: List[Rule] = dataclasses.field(default_factory=list)


@dataclasses.dataclass(frozen=True)
class Profile:
    rules: ProfileRules = dataclasses.field(default_factory=ProfileRules)
    labels: Mapping[str, str] = dataclasses.field(default_factory=dict)


@dataclasses.dataclass(frozen=True)
class WorkloadEndpoint:
    state: str = 'active'
    name: str = ''  # the host-side interface name
    mac: Optional[str] = None
    profile_ids: List[str] = dataclasses.field(default_factory=list)
    ipv4_nets: List[ipaddress.IPv4Network] = dataclasses.field(default_factory=list)
    ipv6_nets: List[ipaddress.IPv6Network] = dataclasses.field(default_factory=list)
    labels: Mapping[str, str] = dataclasses.field(default_factory=dict)


@dataclasses.dataclass(frozen=True)
class Policy:
    order: Optional[float] = None
    selector: str = ''
    inbound_rules: List[Rule] = dataclasses.field(default_factory=list)
    outbound_rules: List[Rule] = dataclasses.field(default_factory=list)
    untracked: bool = False

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            'selector': self.selector,
            'inboundRules': [rule.to_dict() for rule in self.inbound_rules],
            'outboundRules': [rule.to_dict() for rule in self.outbound_rules],
            'untracked': self.untracked,
        }
        if self.order is not None:
            result['order'] = self.order
        return result

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Policy":
        return cls(
            order=data.get('order'),
            selector=data.get('selector', ''),
            inbound_rules=[Rule.from_dict(rule) for rule in data.get('inboundRules', [])],
            outbound_rules=[Rule.from_dict(rule) for rule in data.get('outboundRules', [])],
            untracked=bool(data.get('untracked', False)),
        )


@dataclasses.dataclass(frozen=True)
class IPPool:
    cidr: keys.IPNetwork
    ipip_interface: str = ''
    ipip_mode: str = ''  # "", "always", or "cross-subnet"
    masquerade: bool = False
    ipam: bool = True
    disabled: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            'cidr': str(self.cidr),
            'ipipInterface': self.ipip_interface,
            'ipipMode': self.ipip_mode,
            'masquerade': self.masquerade,
            'ipam': self.ipam,
            'disabled': self.disabled,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "IPPool":
        return cls(
            cidr=ipaddress.ip_network(data['cidr']),
            ipip_interface=data.get('ipipInterface', ''),
            ipip_mode=data.get('ipipMode', ''),
            masquerade=bool(data.get('masquerade', False)),
            ipam=bool(data.get('ipam', True)),
            disabled=bool(data.get('disabled', False)),
        )


@dataclasses.dataclass(frozen=True)
class BGPPeer:
    peer_ip: keys.IPAddress
    as_number: int

    def to_dict(self) -> Dict[str, Any]:
        return {'ip': str(self.peer_ip), 'asNumber': self.as_number}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "BGPPeer":
        return cls(peer_ip=ipaddress.ip_address(data['ip']), as_number=int(data['asNumber']))


@dataclasses.dataclass(frozen=True)
class Node:
    bgp_ipv4_address: Optional[ipaddress.IPv4Address] = None
    bgp_ipv4_network: Optional[ipaddress.IPv4Network] = None
    bgp_as_number: Optional[int] = None
    felix_ipv4: Optional[ipaddress.IPv4Address] = None
    labels: Mapping[str, str] = dataclasses.field(default_factory=dict)
