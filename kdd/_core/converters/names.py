"""
Name encodings between the datastore's entities and the Kubernetes objects.

All of them round-trip: ``parse(build(x)) == x`` for all valid inputs.
Kubernetes namespaces cannot contain dots (they are DNS labels), so the first
dot is used as the separator between the namespace and the object's name;
the objects' names can contain further dots, which are kept intact.
"""
from typing import Tuple

from kdd._core import errors

ORCHESTRATOR_ID = 'k8s'
ENDPOINT_ID = 'eth0'

PROFILE_PREFIX = 'k8s_ns.'
NETWORK_POLICY_PREFIX = 'np.projectcalico.org/'
SYSTEM_NETWORK_POLICY_PREFIX = 'snp.projectcalico.org/'


def build_workload_id(namespace: str, pod_name: str) -> str:
    return f'{namespace}.{pod_name}'


def parse_workload_id(workload_id: str) -> Tuple[str, str]:
    namespace, sep, pod_name = workload_id.partition('.')
    if not sep or not namespace or not pod_name:
        raise errors.NameDecodeError(workload_id, f"Malformed workload id: {workload_id!r}")
    return namespace, pod_name


def build_profile_name(namespace: str) -> str:
    return f'{PROFILE_PREFIX}{namespace}'


def parse_profile_name(name: str) -> str:
    if not name.startswith(PROFILE_PREFIX) or len(name) == len(PROFILE_PREFIX):
        raise errors.NameDecodeError(name, f"Not a namespace-backed profile name: {name!r}")
    return name[len(PROFILE_PREFIX):]


def build_network_policy_name(namespace: str, name: str) -> str:
    return f'{NETWORK_POLICY_PREFIX}{namespace}.{name}'


def parse_network_policy_name(name: str) -> Tuple[str, str]:
    if not name.startswith(NETWORK_POLICY_PREFIX):
        raise errors.NameDecodeError(name, f"Not a network-policy-backed name: {name!r}")
    namespace, sep, policy_name = name[len(NETWORK_POLICY_PREFIX):].partition('.')
    if not sep or not namespace or not policy_name:
        raise errors.NameDecodeError(name, f"Malformed network policy name: {name!r}")
    return namespace, policy_name


def build_system_network_policy_name(name: str) -> str:
    return f'{SYSTEM_NETWORK_POLICY_PREFIX}{name}'


def parse_system_network_policy_name(name: str) -> str:
    if not name.startswith(SYSTEM_NETWORK_POLICY_PREFIX) or name == SYSTEM_NETWORK_POLICY_PREFIX:
        raise errors.NameDecodeError(name, f"Not a system network policy name: {name!r}")
    return name[len(SYSTEM_NETWORK_POLICY_PREFIX):]
