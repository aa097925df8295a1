"""
The keys, the list options, and the key-value pairs of the datastore.

Every key is a frozen (hashable) dataclass which identifies exactly one logical
entity. Every list option is a frozen dataclass with the same kind of fields,
but all of them are optional: an empty/``None`` field means "any".

The set of kinds is closed: the datastore client dispatches on the classes
with ``match`` statements, and refuses anything it does not know explicitly.
"""
import dataclasses
import ipaddress
from typing import Any, Generic, Optional, TypeVar, Union

IPNetwork = Union[ipaddress.IPv4Network, ipaddress.IPv6Network]
IPAddress = Union[ipaddress.IPv4Address, ipaddress.IPv6Address]

DEFAULT_TIER = 'default'


@dataclasses.dataclass(frozen=True)
class Key:
    """ A base class for all the keys; never used directly. """


@dataclasses.dataclass(frozen=True)
class ListOptions:
    """ A base class for all the list options; never used directly. """


#
# Independently stored kinds: backed by the custom resources or the nodes.
#

@dataclasses.dataclass(frozen=True)
class GlobalConfigKey(Key):
    name: str


@dataclasses.dataclass(frozen=True)
class GlobalConfigListOptions(ListOptions):
    name: str = ''


@dataclasses.dataclass(frozen=True)
class IPPoolKey(Key):
    cidr: IPNetwork


@dataclasses.dataclass(frozen=True)
class IPPoolListOptions(ListOptions):
    cidr: Optional[IPNetwork] = None


@dataclasses.dataclass(frozen=True)
class NodeKey(Key):
    hostname: str


@dataclasses.dataclass(frozen=True)
class NodeListOptions(ListOptions):
    hostname: str = ''


@dataclasses.dataclass(frozen=True)
class GlobalBGPPeerKey(Key):
    peer_ip: IPAddress


@dataclasses.dataclass(frozen=True)
class GlobalBGPPeerListOptions(ListOptions):
    peer_ip: Optional[IPAddress] = None


@dataclasses.dataclass(frozen=True)
class NodeBGPPeerKey(Key):
    nodename: str
    peer_ip: IPAddress


@dataclasses.dataclass(frozen=True)
class NodeBGPPeerListOptions(ListOptions):
    nodename: str = ''
    peer_ip: Optional[IPAddress] = None


#
# Derived kinds: computed from the native resources, never stored.
#

@dataclasses.dataclass(frozen=True)
class ProfileKey(Key):
    name: str


@dataclasses.dataclass(frozen=True)
class ProfileListOptions(ListOptions):
    name: str = ''


@dataclasses.dataclass(frozen=True)
class WorkloadEndpointKey(Key):
    hostname: str = ''
    orchestrator_id: str = ''
    workload_id: str = ''
    endpoint_id: str = ''


@dataclasses.dataclass(frozen=True)
class WorkloadEndpointListOptions(ListOptions):
    hostname: str = ''
    orchestrator_id: str = ''
    workload_id: str = ''
    endpoint_id: str = ''


@dataclasses.dataclass(frozen=True)
class PolicyKey(Key):
    name: str
    tier: str = DEFAULT_TIER


@dataclasses.dataclass(frozen=True)
class PolicyListOptions(ListOptions):
    name: str = ''
    tier: str = ''


@dataclasses.dataclass(frozen=True)
class HostConfigKey(Key):
    hostname: str
    name: str


@dataclasses.dataclass(frozen=True)
class HostConfigListOptions(ListOptions):
    hostname: str = ''
    name: str = ''


@dataclasses.dataclass(frozen=True)
class ReadyFlagKey(Key):
    pass


@dataclasses.dataclass(frozen=True)
class ReadyFlagListOptions(ListOptions):
    pass


#
# Status reports: accepted on apply, but never persisted.
#

@dataclasses.dataclass(frozen=True)
class ActiveStatusReportKey(Key):
    hostname: str


@dataclasses.dataclass(frozen=True)
class LastStatusReportKey(Key):
    hostname: str


@dataclasses.dataclass(frozen=True)
class HostEndpointStatusKey(Key):
    hostname: str
    endpoint_id: str


@dataclasses.dataclass(frozen=True)
class WorkloadEndpointStatusKey(Key):
    hostname: str
    orchestrator_id: str
    workload_id: str
    endpoint_id: str


#
# Known to the model, but not served by this datastore at all.
#

@dataclasses.dataclass(frozen=True)
class HostEndpointKey(Key):
    hostname: str
    endpoint_id: str


@dataclasses.dataclass(frozen=True)
class HostEndpointListOptions(ListOptions):
    hostname: str = ''
    endpoint_id: str = ''


_V = TypeVar('_V')


@dataclasses.dataclass(frozen=True)
class KVPair(Generic[_V]):
    """
    A key with its value and the opaque revision of the backing object.

    The revision is the ``resourceVersion`` of the Kubernetes object the pair
    was read from; ``None`` for the pairs which were never read from the API.
    """
    key: Key
    value: _V
    revision: Optional[str] = None


AnyKVPair = KVPair[Any]
