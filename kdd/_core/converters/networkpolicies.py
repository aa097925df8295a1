"""
Kubernetes network policies as the datastore's policies.

A network policy applies to the pods of its own namespace selected by its pod
selector, and allows the ingress traffic described by its ingress rules;
everything else inbound is denied, everything outbound is allowed.

Every ingress rule becomes as many inbound rules as there are combinations
of its peers and ports; an absent list of peers or ports means "any".
"""
from typing import List, Optional

from kdd._cogs.structs import bodies, keys, values
from kdd._core.converters import names, selectors

NETWORK_POLICY_ORDER = 1000.0


def network_policy_to_policy(policy: bodies.RawBody) -> keys.KVPair[values.Policy]:
    namespace = bodies.get_namespace(policy)
    spec = policy.get('spec', {})

    inbound_rules: List[values.Rule] = []
    for ingress in spec.get('ingress') or []:
        inbound_rules.extend(convert_ingress_rule(ingress, namespace=namespace))

    return keys.KVPair(
        key=keys.PolicyKey(name=names.build_network_policy_name(namespace, bodies.get_name(policy))),
        value=values.Policy(
            order=NETWORK_POLICY_ORDER,
            selector=selectors.join_selectors(
                selectors.namespace_selector(namespace),
                selectors.convert_label_selector(spec.get('podSelector')),
            ),
            inbound_rules=inbound_rules,
            outbound_rules=[values.Rule(action='allow')],
        ),
        revision=bodies.get_revision(policy),
    )


def convert_ingress_rule(
        ingress: bodies.RawNetworkPolicyIngressRule,
        *,
        namespace: str,
) -> List[values.Rule]:
    peers: List[Optional[bodies.RawNetworkPolicyPeer]] = list(ingress.get('from') or []) or [None]
    ports: List[Optional[bodies.RawNetworkPolicyPort]] = list(ingress.get('ports') or []) or [None]
    return [
        values.Rule(
            action='allow',
            protocol=_convert_protocol(port),
            src_selector=_convert_peer_selector(peer, namespace=namespace),
            src_nets=_convert_peer_nets(peer),
            dst_ports=[port['port']] if port is not None and 'port' in port else [],
        )
        for peer in peers
        for port in ports
    ]


def _convert_protocol(port: Optional[bodies.RawNetworkPolicyPort]) -> Optional[str]:
    if port is None:
        return None
    return port.get('protocol', 'TCP').lower()


def _convert_peer_selector(
        peer: Optional[bodies.RawNetworkPolicyPeer],
        *,
        namespace: str,
) -> str:
    if peer is None or 'ipBlock' in peer:
        return ''
    elif 'namespaceSelector' in peer and 'podSelector' in peer:
        return selectors.join_selectors(
            selectors.convert_label_selector(peer['namespaceSelector'],
                                             prefix=selectors.NAMESPACE_LABEL_PREFIX),
            selectors.convert_label_selector(peer['podSelector']),
        ) or f'has({selectors.NAMESPACE_LABEL})'
    elif 'namespaceSelector' in peer:
        # An empty namespace selector means all pods in all namespaces.
        return selectors.convert_label_selector(peer['namespaceSelector'],
                                                prefix=selectors.NAMESPACE_LABEL_PREFIX) \
            or f'has({selectors.NAMESPACE_LABEL})'
    else:
        return selectors.join_selectors(
            selectors.namespace_selector(namespace),
            selectors.convert_label_selector(peer.get('podSelector')),
        )


def _convert_peer_nets(peer: Optional[bodies.RawNetworkPolicyPeer]) -> List[str]:
    if peer is None or 'ipBlock' not in peer:
        return []
    return [peer['ipBlock']['cidr']]
