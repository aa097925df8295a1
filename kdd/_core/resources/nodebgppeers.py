"""
The per-node BGP peers, as the annotations on the Kubernetes nodes.

Every peer is a separate annotation named after the peer's address, with
the peer's settings JSON-encoded in the annotation's value. This way, the
peers of one node can be modified independently of each other by the merge-
patches, with no read-modify-write cycles on the whole list of the peers.
"""
import json
from typing import Collection, List, Optional, Tuple

from kdd._cogs.clients import fetching, patching
from kdd._cogs.structs import bodies, keys, references, values
from kdd._core import errors
from kdd._core.resources import base

PEER_ANNOTATION_PREFIX = 'peer.bgp.projectcalico.org/'


def build_annotation_name(peer_ip: keys.IPAddress) -> str:
    return f"{PEER_ANNOTATION_PREFIX}{str(peer_ip).replace(':', '-')}"


def parse_annotation_value(nodename: str, value: str) -> values.BGPPeer:
    try:
        return values.BGPPeer.from_dict(json.loads(value))
    except (KeyError, ValueError, TypeError) as e:
        raise errors.DecodeError(nodename, f"Malformed BGP peer of the node {nodename!r}: {value!r}") from e


def node_to_peers(node: bodies.RawBody) -> List[keys.KVPair[values.BGPPeer]]:
    nodename = bodies.get_name(node)
    revision = bodies.get_revision(node)
    result: List[keys.KVPair[values.BGPPeer]] = []
    for name, value in bodies.get_annotations(node).items():
        if name.startswith(PEER_ANNOTATION_PREFIX):
            peer = parse_annotation_value(nodename, value)
            key = keys.NodeBGPPeerKey(nodename=nodename, peer_ip=peer.peer_ip)
            result.append(keys.KVPair(key=key, value=peer, revision=revision))
    return result


class NodeBGPPeerClient(base.ResourceClient[keys.NodeBGPPeerKey,
                                            keys.NodeBGPPeerListOptions,
                                            values.BGPPeer]):

    async def create(self, kvp: keys.KVPair[values.BGPPeer]) -> keys.KVPair[values.BGPPeer]:
        assert isinstance(kvp.key, keys.NodeBGPPeerKey)
        node = await self._read_node(kvp.key, kvp.key.nodename)
        if build_annotation_name(kvp.key.peer_ip) in bodies.get_annotations(node):
            raise errors.ResourceAlreadyExists(kvp.key)
        node = await self._patch(kvp.key, kvp.value)
        return keys.KVPair(key=kvp.key, value=kvp.value, revision=bodies.get_revision(node))

    async def update(self, kvp: keys.KVPair[values.BGPPeer]) -> keys.KVPair[values.BGPPeer]:
        assert isinstance(kvp.key, keys.NodeBGPPeerKey)
        node = await self._read_node(kvp.key, kvp.key.nodename)
        if build_annotation_name(kvp.key.peer_ip) not in bodies.get_annotations(node):
            raise errors.ResourceDoesNotExist(kvp.key)
        node = await self._patch(kvp.key, kvp.value)
        return keys.KVPair(key=kvp.key, value=kvp.value, revision=bodies.get_revision(node))

    async def apply(self, kvp: keys.KVPair[values.BGPPeer]) -> keys.KVPair[values.BGPPeer]:
        assert isinstance(kvp.key, keys.NodeBGPPeerKey)
        node = await self._patch(kvp.key, kvp.value)
        return keys.KVPair(key=kvp.key, value=kvp.value, revision=bodies.get_revision(node))

    async def delete(self, kvp: keys.KVPair[values.BGPPeer]) -> keys.KVPair[values.BGPPeer]:
        assert isinstance(kvp.key, keys.NodeBGPPeerKey)
        node = await self._read_node(kvp.key, kvp.key.nodename)
        if build_annotation_name(kvp.key.peer_ip) not in bodies.get_annotations(node):
            raise errors.ResourceDoesNotExist(kvp.key)
        await self._patch(kvp.key, None)
        return kvp

    async def get(self, key: keys.NodeBGPPeerKey) -> keys.KVPair[values.BGPPeer]:
        node = await self._read_node(key, key.nodename)
        value = bodies.get_annotations(node).get(build_annotation_name(key.peer_ip))
        if value is None:
            raise errors.ResourceDoesNotExist(key)
        peer = parse_annotation_value(key.nodename, value)
        return keys.KVPair(key=key, value=peer, revision=bodies.get_revision(node))

    async def list(
            self,
            options: keys.NodeBGPPeerListOptions,
    ) -> Tuple[List[keys.KVPair[values.BGPPeer]], Optional[str]]:
        revision: Optional[str]
        objs: Collection[bodies.RawBody]
        if options.nodename:
            try:
                node = await self._read_node(options, options.nodename)
            except errors.ResourceDoesNotExist:
                return [], None
            objs, revision = [node], bodies.get_revision(node)
        else:
            with errors.translated(options):
                objs, revision = await fetching.list_objs(
                    context=self.context,
                    settings=self.settings,
                    resource=references.NODES,
                    logger=self.logger,
                )

        result: List[keys.KVPair[values.BGPPeer]] = []
        for obj in objs:
            for kvp in node_to_peers(obj):
                assert isinstance(kvp.key, keys.NodeBGPPeerKey)
                if options.peer_ip is None or kvp.key.peer_ip == options.peer_ip:
                    result.append(kvp)
        return result, revision

    async def _read_node(self, identifier: object, nodename: str) -> bodies.RawBody:
        with errors.translated(identifier):
            return await fetching.read_obj(
                context=self.context,
                settings=self.settings,
                resource=references.NODES,
                name=base.require_name(identifier, nodename),
                logger=self.logger,
            )

    async def _patch(
            self,
            key: keys.NodeBGPPeerKey,
            peer: Optional[values.BGPPeer],
    ) -> bodies.RawBody:
        annotation = json.dumps(peer.to_dict()) if peer is not None else None
        with errors.translated(key):
            node = await patching.patch_obj(
                context=self.context,
                settings=self.settings,
                resource=references.NODES,
                name=base.require_name(key, key.nodename),
                patch={'metadata': {'annotations': {build_annotation_name(key.peer_ip): annotation}}},
                logger=self.logger,
            )
        return node
