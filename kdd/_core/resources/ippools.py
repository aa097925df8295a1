from typing import Any, Mapping, Optional

from kdd._cogs.structs import bodies, keys, references, values
from kdd._core.resources import base


def build_pool_name(cidr: keys.IPNetwork) -> str:
    # Neither slashes nor colons are allowed in the objects' names.
    return str(cidr).replace('/', '-').replace(':', '-')


class IPPoolClient(base.CustomResourceClient[keys.IPPoolKey,
                                             keys.IPPoolListOptions,
                                             values.IPPool]):
    resource = references.IP_POOLS

    def build_name(self, key: keys.IPPoolKey) -> str:
        return build_pool_name(key.cidr)

    def build_spec(self, kvp: keys.KVPair[values.IPPool]) -> Mapping[str, Any]:
        return kvp.value.to_dict()

    def parse_body(self, body: bodies.RawBody) -> keys.KVPair[values.IPPool]:
        pool = values.IPPool.from_dict(body['spec'])
        return keys.KVPair(
            key=keys.IPPoolKey(cidr=pool.cidr),
            value=pool,
            revision=bodies.get_revision(body),
        )

    def options_to_key(self, options: keys.IPPoolListOptions) -> Optional[keys.IPPoolKey]:
        return keys.IPPoolKey(cidr=options.cidr) if options.cidr is not None else None
