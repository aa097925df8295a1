from typing import Any, Mapping, Optional

from kdd._cogs.structs import bodies, keys, references
from kdd._core.resources import base


class GlobalConfigClient(base.CustomResourceClient[keys.GlobalConfigKey,
                                                   keys.GlobalConfigListOptions,
                                                   str]):
    """
    The cluster-wide configuration values, one object per config name.

    The objects' names are lowercased (K8s requires so), so the original
    spelling of the config name is kept in the spec together with the value.
    """
    resource = references.GLOBAL_CONFIGS

    def build_name(self, key: keys.GlobalConfigKey) -> str:
        return key.name.lower()

    def build_spec(self, kvp: keys.KVPair[str]) -> Mapping[str, Any]:
        assert isinstance(kvp.key, keys.GlobalConfigKey)
        return {'name': kvp.key.name, 'value': kvp.value}

    def parse_body(self, body: bodies.RawBody) -> keys.KVPair[str]:
        spec = body['spec']
        return keys.KVPair(
            key=keys.GlobalConfigKey(name=spec['name']),
            value=spec['value'],
            revision=bodies.get_revision(body),
        )

    def options_to_key(self, options: keys.GlobalConfigListOptions) -> Optional[keys.GlobalConfigKey]:
        return keys.GlobalConfigKey(name=options.name) if options.name else None
