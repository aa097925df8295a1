"""
The resource clients: one per independently stored kind.

All of them follow the same contract (`ResourceClient`), so that the datastore
client can dispatch to them uniformly. Every call that reaches the K8s API
is wrapped into `errors.translated`, so no K8s API errors leak to the callers.

Most of the stored kinds are custom resources of our own (`CustomResourceClient`),
which differ only in how the keys & values are encoded into the objects' names
and specs; the rest (nodes & per-node BGP peers) live in the nodes' annotations.
"""
import abc
import logging
from typing import Any, Generic, List, Mapping, Optional, Tuple, TypeVar

from kdd._cogs.clients import auth, creating, deleting, errors as apierrors, fetching, replacing
from kdd._cogs.configs import configuration
from kdd._cogs.helpers import typedefs
from kdd._cogs.structs import bodies, keys, references
from kdd._core import errors

KeyT = TypeVar('KeyT', bound=keys.Key)
OptionsT = TypeVar('OptionsT', bound=keys.ListOptions)
ValueT = TypeVar('ValueT')


def require_name(identifier: object, name: str) -> str:
    """ The empty names address no objects, so the objects cannot exist. """
    if not name:
        raise errors.ResourceDoesNotExist(identifier)
    return name


class ResourceClient(Generic[KeyT, OptionsT, ValueT], metaclass=abc.ABCMeta):
    """
    The uniform contract of the clients of the independently stored kinds.

    ``list()`` returns the key-value pairs together with the revision
    of the listing as a whole (if known), for the future watch-streams.
    """

    def __init__(
            self,
            *,
            context: auth.APIContext,
            settings: configuration.DatastoreSettings,
            logger: Optional[typedefs.Logger] = None,
    ) -> None:
        super().__init__()
        self.context = context
        self.settings = settings
        self.logger: typedefs.Logger = logger if logger is not None else logging.getLogger(type(self).__module__)

    async def ensure_initialized(self) -> None:
        pass

    @abc.abstractmethod
    async def create(self, kvp: keys.KVPair[ValueT]) -> keys.KVPair[ValueT]:
        raise NotImplementedError

    @abc.abstractmethod
    async def update(self, kvp: keys.KVPair[ValueT]) -> keys.KVPair[ValueT]:
        raise NotImplementedError

    @abc.abstractmethod
    async def apply(self, kvp: keys.KVPair[ValueT]) -> keys.KVPair[ValueT]:
        raise NotImplementedError

    @abc.abstractmethod
    async def delete(self, kvp: keys.KVPair[ValueT]) -> keys.KVPair[ValueT]:
        raise NotImplementedError

    @abc.abstractmethod
    async def get(self, key: KeyT) -> keys.KVPair[ValueT]:
        raise NotImplementedError

    @abc.abstractmethod
    async def list(self, options: OptionsT) -> Tuple[List[keys.KVPair[ValueT]], Optional[str]]:
        raise NotImplementedError


class CustomResourceClient(ResourceClient[KeyT, OptionsT, ValueT], metaclass=abc.ABCMeta):
    """
    A client for a kind stored in our own cluster-scoped custom resource.

    The descendants only define the resource and the codecs: how the keys map
    to the objects' names, and how the values map to the objects' specs.
    """
    resource: references.Resource

    @abc.abstractmethod
    def build_name(self, key: KeyT) -> str:
        raise NotImplementedError

    @abc.abstractmethod
    def build_spec(self, kvp: keys.KVPair[ValueT]) -> Mapping[str, Any]:
        raise NotImplementedError

    @abc.abstractmethod
    def parse_body(self, body: bodies.RawBody) -> keys.KVPair[ValueT]:
        """ Interpret the object; any ``KeyError``/``ValueError`` means a malformed object. """
        raise NotImplementedError

    @abc.abstractmethod
    def options_to_key(self, options: OptionsT) -> Optional[KeyT]:
        """ Convert the list options to an exact key, or ``None`` if not exact. """
        raise NotImplementedError

    def build_body(self, kvp: keys.KVPair[ValueT], *, revision: Optional[str] = None) -> bodies.RawBody:
        metadata: bodies.RawMeta = {'name': self.build_name(kvp.key)}
        if revision:
            metadata['resourceVersion'] = revision
        return {
            'apiVersion': self.resource.api_version,
            'kind': self.resource.kind or '',
            'metadata': metadata,
            'spec': self.build_spec(kvp),
        }

    def build_definition(self) -> bodies.RawBody:
        return {
            'apiVersion': references.CRDS.api_version,
            'kind': references.CRDS.kind or '',
            'metadata': {'name': self.resource.name},
            'spec': {
                'group': self.resource.group,
                'scope': 'Namespaced' if self.resource.namespaced else 'Cluster',
                'names': {
                    'plural': self.resource.plural,
                    'singular': self.resource.singular,
                    'kind': self.resource.kind,
                },
                'versions': [{
                    'name': self.resource.version,
                    'served': True,
                    'storage': True,
                    'schema': {'openAPIV3Schema': {
                        'type': 'object',
                        'x-kubernetes-preserve-unknown-fields': True,
                    }},
                }],
            },
        }

    def convert(self, body: bodies.RawBody) -> keys.KVPair[ValueT]:
        try:
            return self.parse_body(body)
        except (KeyError, ValueError, TypeError) as e:
            name = bodies.get_name(body)
            raise errors.DecodeError(name, f"Malformed {self.resource.name} object {name!r}: {e!r}") from e

    async def ensure_initialized(self) -> None:
        """
        Register the custom resource definition, unless it already exists.

        It is safe to call it repeatedly and concurrently from many processes:
        whoever comes first creates the definition, the others see a conflict.
        """
        try:
            with errors.translated(self.resource.name):
                try:
                    await creating.create_obj(
                        context=self.context,
                        settings=self.settings,
                        resource=references.CRDS,
                        body=self.build_definition(),
                        logger=self.logger,
                    )
                except apierrors.APIConflictError:
                    self.logger.debug(f"Custom resource {self.resource.name} is already defined.")
                    return
        except errors.DatastoreError as e:
            self.logger.error(f"Failed to define the custom resource {self.resource.name}: {e}")
            raise
        self.logger.info(f"Custom resource {self.resource.name} is defined.")

    async def create(self, kvp: keys.KVPair[ValueT]) -> keys.KVPair[ValueT]:
        with errors.translated(kvp.key):
            body = await creating.create_obj(
                context=self.context,
                settings=self.settings,
                resource=self.resource,
                body=self.build_body(kvp),
                logger=self.logger,
            )
        return self.convert(body)

    async def update(self, kvp: keys.KVPair[ValueT]) -> keys.KVPair[ValueT]:
        require_name(kvp.key, self.build_name(kvp.key))
        revision = kvp.revision
        if not revision:
            current = await self._read(kvp.key)
            revision = bodies.get_revision(current)

        with errors.translated(kvp.key):
            body = await replacing.replace_obj(
                context=self.context,
                settings=self.settings,
                resource=self.resource,
                body=self.build_body(kvp, revision=revision),
                logger=self.logger,
            )
        return self.convert(body)

    async def apply(self, kvp: keys.KVPair[ValueT]) -> keys.KVPair[ValueT]:
        try:
            return await self.update(kvp)
        except errors.ResourceDoesNotExist:
            self.logger.debug(f"Applying as creation, since absent: {kvp.key!r}")
            return await self.create(kvp)

    async def delete(self, kvp: keys.KVPair[ValueT]) -> keys.KVPair[ValueT]:
        with errors.translated(kvp.key):
            await deleting.delete_obj(
                context=self.context,
                settings=self.settings,
                resource=self.resource,
                name=require_name(kvp.key, self.build_name(kvp.key)),
                logger=self.logger,
            )
        return kvp

    async def get(self, key: KeyT) -> keys.KVPair[ValueT]:
        body = await self._read(key)
        return self.convert(body)

    async def list(self, options: OptionsT) -> Tuple[List[keys.KVPair[ValueT]], Optional[str]]:
        key = self.options_to_key(options)
        if key is not None:
            try:
                kvp = await self.get(key)
            except errors.ResourceDoesNotExist:
                return [], None
            return [kvp], kvp.revision

        with errors.translated(options):
            objs, revision = await fetching.list_objs(
                context=self.context,
                settings=self.settings,
                resource=self.resource,
                logger=self.logger,
            )
        return [self.convert(obj) for obj in objs], revision

    async def _read(self, key: KeyT) -> bodies.RawBody:
        with errors.translated(key):
            return await fetching.read_obj(
                context=self.context,
                settings=self.settings,
                resource=self.resource,
                name=require_name(key, self.build_name(key)),
                logger=self.logger,
            )
