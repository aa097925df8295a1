"""
Authentication-related structures.

The datastore handles only rudimentary authentication directly:
everything usable in a generic HTTP client, and nothing more than that:

* TCP server host & port.
* SSL verification/ignorance flag.
* SSL certificate authority.
* SSL client certificate and its private key.
* HTTP ``Authorization: Basic username:password``.
* HTTP ``Authorization: Bearer token`` (or other schemes).

Sophisticated auth-providers (exec plugins, OIDC refreshing, etc.)
are not supported: use a kubeconfig with a static token or certificates.

.. seealso::
    :mod:`kdd._cogs.clients.login` and :mod:`kdd._cogs.clients.auth`.
"""
import dataclasses
from typing import Optional


class LoginError(Exception):
    """ Raised when the datastore cannot find any credentials for the API. """


@dataclasses.dataclass(frozen=True)
class ConnectionInfo:
    """
    A single endpoint with specific credentials and connection flags to use.
    """
    server: str  # e.g. "https://localhost:443"
    ca_path: Optional[str] = None
    ca_data: Optional[bytes] = None
    insecure: Optional[bool] = None
    username: Optional[str] = None
    password: Optional[str] = None
    scheme: Optional[str] = None  # RFC-7235/5.1: e.g. Bearer, Basic, Digest, etc.
    token: Optional[str] = None
    certificate_path: Optional[str] = None
    certificate_data: Optional[bytes] = None
    private_key_path: Optional[str] = None
    private_key_data: Optional[bytes] = None
    default_namespace: Optional[str] = None


@dataclasses.dataclass(frozen=True)
class KubeConfig:
    """
    User-provided overrides on top of the discovered credentials.

    Every non-empty field replaces the corresponding field of the credentials
    loaded from the kubeconfig file or from the in-cluster service account.
    """
    kubeconfig: Optional[str] = None  # an explicit path; otherwise, $KUBECONFIG or ~/.kube/config
    api_endpoint: Optional[str] = None
    cert_file: Optional[str] = None
    key_file: Optional[str] = None
    ca_file: Optional[str] = None
    api_token: Optional[str] = dataclasses.field(default=None, repr=False)
    insecure_skip_tls_verify: bool = False
    disable_node_poll: bool = False
