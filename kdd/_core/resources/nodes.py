from typing import List, Optional, Tuple

from kdd._cogs.clients import fetching, patching
from kdd._cogs.structs import keys, references, values
from kdd._core import errors
from kdd._core.converters import nodes
from kdd._core.resources import base


class NodeClient(base.ResourceClient[keys.NodeKey, keys.NodeListOptions, values.Node]):
    """
    The datastore's nodes, as the BGP annotations on the Kubernetes nodes.

    The nodes themselves belong to the kubelets: they can be neither created
    nor deleted via the datastore, only annotated.
    """

    async def create(self, kvp: keys.KVPair[values.Node]) -> keys.KVPair[values.Node]:
        raise errors.OperationNotSupported(kvp.key, operation='Create')

    async def delete(self, kvp: keys.KVPair[values.Node]) -> keys.KVPair[values.Node]:
        raise errors.OperationNotSupported(kvp.key, operation='Delete')

    async def update(self, kvp: keys.KVPair[values.Node]) -> keys.KVPair[values.Node]:
        assert isinstance(kvp.key, keys.NodeKey)
        with errors.translated(kvp.key):
            body = await patching.patch_obj(
                context=self.context,
                settings=self.settings,
                resource=references.NODES,
                name=base.require_name(kvp.key, kvp.key.hostname),
                patch={'metadata': {'annotations': nodes.node_to_annotations(kvp.value)}},
                logger=self.logger,
            )
        return nodes.node_to_node(body)

    async def apply(self, kvp: keys.KVPair[values.Node]) -> keys.KVPair[values.Node]:
        return await self.update(kvp)

    async def get(self, key: keys.NodeKey) -> keys.KVPair[values.Node]:
        with errors.translated(key):
            body = await fetching.read_obj(
                context=self.context,
                settings=self.settings,
                resource=references.NODES,
                name=base.require_name(key, key.hostname),
                logger=self.logger,
            )
        return nodes.node_to_node(body)

    async def list(self, options: keys.NodeListOptions) -> Tuple[List[keys.KVPair[values.Node]], Optional[str]]:
        if options.hostname:
            try:
                kvp = await self.get(keys.NodeKey(hostname=options.hostname))
            except errors.ResourceDoesNotExist:
                return [], None
            return [kvp], kvp.revision

        with errors.translated(options):
            objs, revision = await fetching.list_objs(
                context=self.context,
                settings=self.settings,
                resource=references.NODES,
                logger=self.logger,
            )
        return [nodes.node_to_node(obj) for obj in objs], revision
