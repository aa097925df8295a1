import dataclasses
import urllib.parse
from typing import FrozenSet, Iterator, List, Mapping, NewType, Optional

# A specific really existing addressable namespace (at least, the one assumed to be so).
# Made as a NewType for stricter type-checking to avoid collisions with other strings.
NamespaceName = NewType('NamespaceName', str)

# A namespace reference usable in the API calls. `None` means cluster-wide API calls.
Namespace = Optional[NamespaceName]


@dataclasses.dataclass(frozen=True, eq=False, repr=False)
class Resource:
    """
    A reference to a very specific custom or built-in resource kind.

    It is used to form the K8s API URLs. Generally, K8s API only needs
    an API group, an API version, and a plural name of the resource.
    All other names are remembered for registering the custom resources,
    for logging, and for informational purposes.
    """

    group: str
    """
    The resource's API group; e.g. ``"crd.projectcalico.org"``, ``"networking.k8s.io"``.
    For Core v1 API resources, an empty string: ``""``.
    """

    version: str
    """
    The resource's API version; e.g. ``"v1"``, ``"v1beta1"``, etc.
    """

    plural: str
    """
    The resource's plural name; e.g. ``"pods"``, ``"ippools"``.
    It is used as an API endpoint, together with API group & version.
    """

    kind: Optional[str] = None
    """
    The resource's kind (as in YAML files); e.g. ``"Pod"``, ``"IPPool"``.
    """

    singular: Optional[str] = None
    """
    The resource's singular name; e.g. ``"pod"``, ``"ippool"``.
    """

    subresources: FrozenSet[str] = frozenset()
    """
    The resource's subresources, if defined; e.g. ``{"status"}``.
    """

    namespaced: Optional[bool] = None
    """
    Whether the resource is namespaced (``True``) or cluster-scoped (``False``).
    """

    def __hash__(self) -> int:
        return hash((self.group, self.version, self.plural))

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Resource):
            self_tuple = (self.group, self.version, self.plural)
            other_tuple = (other.group, other.version, other.plural)
            return self_tuple == other_tuple
        else:
            return NotImplemented

    def __repr__(self) -> str:
        return f'{self.plural}.{self.version}.{self.group}'.strip('.')

    # Mostly for tests and logs, to be used as `group, version, plural = resource`.
    def __iter__(self) -> Iterator[str]:
        return iter((self.group, self.version, self.plural))

    @property
    def name(self) -> str:
        """ The full name as used in the CRDs: e.g. ``"ippools.crd.projectcalico.org"``. """
        return f'{self.plural}.{self.group}'.strip('.')

    @property
    def api_version(self) -> str:
        return f'{self.group}/{self.version}' if self.group else self.version

    def get_url(
            self,
            *,
            server: Optional[str] = None,
            namespace: Namespace = None,
            name: Optional[str] = None,
            subresource: Optional[str] = None,
            params: Optional[Mapping[str, str]] = None,
    ) -> str:
        """
        Build a URL to be used with K8s API.

        If the namespace is not set, a cluster-wide URL is returned.
        For cluster-scoped resources, the namespace is ignored.

        If the name is not set, the URL for the resource list is returned.
        Otherwise (if set), the URL for the individual resource is returned.
        The empty names are rejected, so that they never address the whole list.

        If subresource is set, that subresource's URL is returned,
        regardless of whether such a subresource is known or not.

        Params go to the query parameters (``?param1=value1&param2=value2...``).
        """
        if name is not None and not name:
            raise ValueError("Empty names cannot address specific objects.")
        if subresource is not None and name is None:
            raise ValueError("Subresources can be used only with specific resources by their name.")
        if not self.namespaced and namespace is not None:
            raise ValueError(f"Specific namespaces are not supported for cluster-scoped resources.")
        if self.namespaced and namespace is None and name is not None:
            raise ValueError("Specific namespaces are required for specific namespaced resources.")

        parts: List[Optional[str]] = [
            '/api' if self.group == '' and self.version == 'v1' else '/apis',
            self.group,
            self.version,
            'namespaces' if self.namespaced and namespace is not None else None,
            namespace if self.namespaced and namespace is not None else None,
            self.plural,
            urllib.parse.quote(name, safe='') if name is not None else None,
            subresource,
        ]

        query = urllib.parse.urlencode(params, encoding='utf-8') if params else ''
        path = '/'.join([part for part in parts if part])
        url = path + ('?' if query else '') + query
        return url if server is None else server.rstrip('/') + '/' + url.lstrip('/')


# The built-in resources which the derived entities are computed from.
NAMESPACES = Resource('', 'v1', 'namespaces', kind='Namespace', namespaced=False)
PODS = Resource('', 'v1', 'pods', kind='Pod', subresources=frozenset({'status'}), namespaced=True)
NODES = Resource('', 'v1', 'nodes', kind='Node', subresources=frozenset({'status'}), namespaced=False)
NETWORK_POLICIES = Resource('networking.k8s.io', 'v1', 'networkpolicies',
                            kind='NetworkPolicy', namespaced=True)
CRDS = Resource('apiextensions.k8s.io', 'v1', 'customresourcedefinitions',
                kind='CustomResourceDefinition', namespaced=False)

# The custom resources registered by the datastore itself (all cluster-scoped).
CALICO_GROUP = 'crd.projectcalico.org'
GLOBAL_CONFIGS = Resource(CALICO_GROUP, 'v1', 'globalconfigs',
                          kind='GlobalConfig', singular='globalconfig', namespaced=False)
IP_POOLS = Resource(CALICO_GROUP, 'v1', 'ippools',
                    kind='IPPool', singular='ippool', namespaced=False)
GLOBAL_BGP_PEERS = Resource(CALICO_GROUP, 'v1', 'globalbgppeers',
                            kind='GlobalBGPPeer', singular='globalbgppeer', namespaced=False)
SYSTEM_NETWORK_POLICIES = Resource(CALICO_GROUP, 'v1', 'systemnetworkpolicies',
                                   kind='SystemNetworkPolicy', singular='systemnetworkpolicy',
                                   namespaced=False)
