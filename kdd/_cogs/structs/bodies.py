"""
All the structures coming from/to the Kubernetes API.

For strict type-checking, they are detailed to the per-field level
(e.g. `TypedDict` instead of just ``Mapping[Any, Any]``), but only
for the fields that the datastore actually reads or writes.
All non-used payload falls into `Any`, and is not type-checked.

Everything marked "raw" is a plain unwrapped unprocessed data as JSON-decoded
from the Kubernetes API, as retrieved in the fetching/listing API calls.
"""
from typing import Any, List, Mapping

from typing_extensions import TypedDict

Labels = Mapping[str, str]
Annotations = Mapping[str, str]


class RawMeta(TypedDict, total=False):
    uid: str
    name: str
    namespace: str
    labels: Labels
    annotations: Annotations
    resourceVersion: str
    creationTimestamp: str
    deletionTimestamp: str


class RawBody(TypedDict, total=False):
    apiVersion: str
    kind: str
    metadata: RawMeta
    spec: Mapping[str, Any]
    status: Mapping[str, Any]


class RawListMeta(TypedDict, total=False):
    resourceVersion: str


class RawList(TypedDict, total=False):
    apiVersion: str
    kind: str
    metadata: RawListMeta
    items: List[RawBody]


class RawLabelSelectorRequirement(TypedDict, total=False):
    key: str
    operator: str  # In, NotIn, Exists, DoesNotExist
    values: List[str]


class RawLabelSelector(TypedDict, total=False):
    matchLabels: Labels
    matchExpressions: List[RawLabelSelectorRequirement]


class RawNetworkPolicyPort(TypedDict, total=False):
    protocol: str
    port: Any  # either a number or a named port


class RawNetworkPolicyPeer(TypedDict, total=False):
    podSelector: RawLabelSelector
    namespaceSelector: RawLabelSelector
    ipBlock: Mapping[str, Any]


# The functional syntax, since "from" is a reserved word in Python.
RawNetworkPolicyIngressRule = TypedDict('RawNetworkPolicyIngressRule', {
    'from': List[RawNetworkPolicyPeer],
    'ports': List[RawNetworkPolicyPort],
}, total=False)


def get_name(body: RawBody) -> str:
    return body.get('metadata', {}).get('name', '')


def get_namespace(body: RawBody) -> str:
    return body.get('metadata', {}).get('namespace', '')


def get_labels(body: RawBody) -> Labels:
    return body.get('metadata', {}).get('labels') or {}


def get_annotations(body: RawBody) -> Annotations:
    return body.get('metadata', {}).get('annotations') or {}


def get_revision(body: RawBody) -> str:
    return body.get('metadata', {}).get('resourceVersion', '')
