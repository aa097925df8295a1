"""
Kubernetes label selectors to the datastore's selector expressions.

The expressions are of the form ``key == 'value' && has(other) && ...``,
with one term per matched label or per match expression, in a stable order:
the matched labels sorted by key first, then the expressions as given.
An empty or absent label selector produces an empty expression (i.e. "all").
"""
from typing import List, Mapping, Optional

from kdd._cogs.structs import bodies
from kdd._core import errors

NAMESPACE_LABEL = 'calico/k8s_ns'
NAMESPACE_LABEL_PREFIX = 'k8s_ns/label/'


def convert_label_selector(
        selector: Optional[bodies.RawLabelSelector],
        *,
        prefix: str = '',
) -> str:
    if not selector:
        return ''

    terms: List[str] = []
    match_labels: Mapping[str, str] = selector.get('matchLabels') or {}
    for key, value in sorted(match_labels.items()):
        terms.append(f"{prefix}{key} == '{value}'")

    for requirement in selector.get('matchExpressions') or []:
        key = f"{prefix}{requirement['key']}"
        operator = requirement.get('operator')
        values = ', '.join(f"'{value}'" for value in requirement.get('values') or [])
        if operator == 'In':
            terms.append(f"{key} in {{ {values} }}")
        elif operator == 'NotIn':
            terms.append(f"{key} not in {{ {values} }}")
        elif operator == 'Exists':
            terms.append(f"has({key})")
        elif operator == 'DoesNotExist':
            terms.append(f"! has({key})")
        else:
            raise errors.DecodeError(selector, f"Unknown label selector operator: {operator!r}")

    return ' && '.join(terms)


def join_selectors(*selectors: str) -> str:
    return ' && '.join(selector for selector in selectors if selector)


def namespace_selector(namespace: str) -> str:
    return f"{NAMESPACE_LABEL} == '{namespace}'"
