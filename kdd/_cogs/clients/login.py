"""
Rudimentary discovery of the credentials for the Kubernetes API.

The datastore is not a client library, and avoids bringing too much logic
for proper authentication, especially all the complex auth-providers.
Only two sources are supported, in this order of preference:

* a kubeconfig file: explicitly given, or ``$KUBECONFIG``, or ``~/.kube/config``;
* the in-cluster service account of the pod.

The user-provided overrides (`credentials.KubeConfig`) are applied on top
of whatever is discovered. If only the overrides are given and they are
sufficient (i.e. the server is known), no discovery is needed at all.
"""
import dataclasses
import logging
import os
from typing import Any, Dict, Optional

import yaml

from kdd._cogs.structs import credentials

logger = logging.getLogger(__name__)

SERVICE_ACCOUNT_DIR = '/var/run/secrets/kubernetes.io/serviceaccount'


def login(
        config: Optional[credentials.KubeConfig] = None,
) -> credentials.ConnectionInfo:
    """
    Find the credentials and apply the user-provided overrides to them.
    """
    config = config if config is not None else credentials.KubeConfig()
    logger.debug(f"Building the credentials for config: {config!r}")

    info: Optional[credentials.ConnectionInfo]
    if config.kubeconfig:
        info = login_with_kubeconfig(config.kubeconfig)
    else:
        info = login_with_kubeconfig() or login_with_service_account()

    if info is None and config.api_endpoint:
        info = credentials.ConnectionInfo(server=config.api_endpoint)
    if info is None:
        raise credentials.LoginError("Cannot find the credentials neither in kubeconfigs, "
                                     "nor in the service account, nor in the overrides.")
    return apply_overrides(info, config)


def apply_overrides(
        info: credentials.ConnectionInfo,
        config: credentials.KubeConfig,
) -> credentials.ConnectionInfo:
    overrides: Dict[str, Any] = {}
    if config.api_endpoint:
        overrides.update(server=config.api_endpoint)
    if config.cert_file:
        overrides.update(certificate_path=config.cert_file, certificate_data=None)
    if config.key_file:
        overrides.update(private_key_path=config.key_file, private_key_data=None)
    if config.ca_file:
        overrides.update(ca_path=config.ca_file, ca_data=None)
    if config.api_token:
        overrides.update(token=config.api_token, scheme=None)
    if config.insecure_skip_tls_verify:
        overrides.update(insecure=True)
    logger.debug(f"Credentials overrides: {sorted(overrides)!r}")  # no values: they are secrets.
    return dataclasses.replace(info, **overrides)


def login_with_service_account() -> Optional[credentials.ConnectionInfo]:
    """
    A minimalistic login handler that can get raw data from a service account.
    """

    # As per https://kubernetes.io/docs/tasks/run-application/access-api-from-pod/
    token_path = os.path.join(SERVICE_ACCOUNT_DIR, 'token')
    ns_path = os.path.join(SERVICE_ACCOUNT_DIR, 'namespace')
    ca_path = os.path.join(SERVICE_ACCOUNT_DIR, 'ca.crt')

    if os.path.exists(token_path):
        with open(token_path, encoding='utf-8') as f:
            token = f.read().strip()

        namespace: Optional[str] = None
        if os.path.exists(ns_path):
            with open(ns_path, encoding='utf-8') as f:
                namespace = f.read().strip()

        logger.debug("The credentials are taken from the service account.")
        return credentials.ConnectionInfo(
            server='https://kubernetes.default.svc',
            ca_path=ca_path if os.path.exists(ca_path) else None,
            token=token or None,
            default_namespace=namespace or None,
        )
    else:
        return None


def login_with_kubeconfig(
        kubeconfig: Optional[str] = None,
) -> Optional[credentials.ConnectionInfo]:
    """
    A minimalistic login handler that can get raw data from a kubeconfig file.

    No parsing or sophisticated multi-step token retrieval is performed.
    """

    # As per https://kubernetes.io/docs/concepts/configuration/organize-cluster-access-kubeconfig/
    kubeconfig = kubeconfig or os.environ.get('KUBECONFIG')
    if not kubeconfig and os.path.exists(os.path.expanduser('~/.kube/config')):
        kubeconfig = '~/.kube/config'
    if not kubeconfig:
        return None

    paths = [path.strip() for path in kubeconfig.split(os.pathsep)]
    paths = [os.path.expanduser(path) for path in paths if path]

    # As prescribed: if the file is absent or non-deserialisable, then fail. The first value wins.
    current_context: Optional[str] = None
    contexts: Dict[Any, Any] = {}
    clusters: Dict[Any, Any] = {}
    users: Dict[Any, Any] = {}
    for path in paths:

        with open(path, encoding='utf-8') as f:
            config = yaml.safe_load(f.read()) or {}

        if current_context is None:
            current_context = config.get('current-context')
        for item in config.get('contexts', []):
            if item['name'] not in contexts:
                contexts[item['name']] = item.get('context') or {}
        for item in config.get('clusters', []):
            if item['name'] not in clusters:
                clusters[item['name']] = item.get('cluster') or {}
        for item in config.get('users', []):
            if item['name'] not in users:
                users[item['name']] = item.get('user') or {}

    # Once fully parsed, use the current context only.
    if current_context is None:
        raise credentials.LoginError('Current context is not set in kubeconfigs.')
    context = contexts[current_context]
    cluster = clusters[context['cluster']]
    user = users[context['user']]

    # We do not make a fake API request to refresh the token, only take what is there.
    provider_token = user.get('auth-provider', {}).get('config', {}).get('access-token')

    logger.debug(f"The credentials are taken from the kubeconfig: {current_context!r}")
    return credentials.ConnectionInfo(
        server=cluster.get('server'),
        ca_path=cluster.get('certificate-authority'),
        ca_data=cluster.get('certificate-authority-data'),
        insecure=cluster.get('insecure-skip-tls-verify'),
        certificate_path=user.get('client-certificate'),
        certificate_data=user.get('client-certificate-data'),
        private_key_path=user.get('client-key'),
        private_key_data=user.get('client-key-data'),
        username=user.get('username'),
        password=user.get('password'),
        token=user.get('token') or provider_token,
        default_namespace=context.get('namespace'),
    )
