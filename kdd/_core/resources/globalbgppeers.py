from typing import Any, Mapping, Optional

from kdd._cogs.structs import bodies, keys, references, values
from kdd._core.resources import base


def build_peer_name(peer_ip: keys.IPAddress) -> str:
    # Colons of IPv6 addresses are not allowed in the objects' names.
    return str(peer_ip).replace(':', '-')


class GlobalBGPPeerClient(base.CustomResourceClient[keys.GlobalBGPPeerKey,
                                                    keys.GlobalBGPPeerListOptions,
                                                    values.BGPPeer]):
    resource = references.GLOBAL_BGP_PEERS

    def build_name(self, key: keys.GlobalBGPPeerKey) -> str:
        return build_peer_name(key.peer_ip)

    def build_spec(self, kvp: keys.KVPair[values.BGPPeer]) -> Mapping[str, Any]:
        return kvp.value.to_dict()

    def parse_body(self, body: bodies.RawBody) -> keys.KVPair[values.BGPPeer]:
        peer = values.BGPPeer.from_dict(body['spec'])
        return keys.KVPair(
            key=keys.GlobalBGPPeerKey(peer_ip=peer.peer_ip),
            value=peer,
            revision=bodies.get_revision(body),
        )

    def options_to_key(self, options: keys.GlobalBGPPeerListOptions) -> Optional[keys.GlobalBGPPeerKey]:
        return keys.GlobalBGPPeerKey(peer_ip=options.peer_ip) if options.peer_ip is not None else None
