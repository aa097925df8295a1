import pytest
import yaml

from kdd._cogs.clients import login
from kdd._cogs.structs.credentials import ConnectionInfo, KubeConfig, LoginError


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch, tmp_path):
    """ Hide the real kubeconfigs & service accounts of the test runner. """
    monkeypatch.delenv('KUBECONFIG', raising=False)
    monkeypatch.setenv('HOME', str(tmp_path / 'home'))
    monkeypatch.setattr(login, 'SERVICE_ACCOUNT_DIR', str(tmp_path / 'serviceaccount'))


@pytest.fixture()
def kubeconfig(tmp_path):
    path = tmp_path / 'kubeconfig.yaml'
    path.write_text(yaml.safe_dump({
        'current-context': 'ctx',
        'contexts': [{'name': 'ctx', 'context': {'cluster': 'clstr', 'user': 'usr', 'namespace': 'ns1'}}],
        'clusters': [{'name': 'clstr', 'cluster': {'server': 'https://k8s:6443',
                                                   'certificate-authority': '/ca.crt'}}],
        'users': [{'name': 'usr', 'user': {'token': 'tkn'}}],
    }))
    return str(path)


@pytest.fixture()
def service_account(tmp_path):
    path = tmp_path / 'serviceaccount'
    path.mkdir()
    (path / 'token').write_text('sa-token\n')
    (path / 'namespace').write_text('kube-system\n')
    return path


def test_kubeconfig_explicitly(kubeconfig):
    info = login.login(KubeConfig(kubeconfig=kubeconfig))
    assert info == ConnectionInfo(server='https://k8s:6443', ca_path='/ca.crt',
                                  token='tkn', default_namespace='ns1')


def test_kubeconfig_from_envvar(kubeconfig, monkeypatch):
    monkeypatch.setenv('KUBECONFIG', kubeconfig)
    info = login.login()
    assert info.server == 'https://k8s:6443'


def test_kubeconfig_without_current_context(tmp_path):
    path = tmp_path / 'kubeconfig.yaml'
    path.write_text(yaml.safe_dump({'contexts': [], 'clusters': [], 'users': []}))
    with pytest.raises(LoginError):
        login.login(KubeConfig(kubeconfig=str(path)))


def test_service_account(service_account):
    info = login.login()
    assert info == ConnectionInfo(server='https://kubernetes.default.svc',
                                  token='sa-token', default_namespace='kube-system')


def test_kubeconfig_is_preferred_to_service_account(kubeconfig, service_account, monkeypatch):
    monkeypatch.setenv('KUBECONFIG', kubeconfig)
    info = login.login()
    assert info.token == 'tkn'


def test_overrides_only():
    info = login.login(KubeConfig(api_endpoint='https://override:443', api_token='secret'))
    assert info == ConnectionInfo(server='https://override:443', token='secret')


def test_overrides_on_top_of_kubeconfig(kubeconfig):
    config = KubeConfig(kubeconfig=kubeconfig, api_endpoint='https://override:443',
                        ca_file='/other-ca.crt', cert_file='/cert.pem', key_file='/key.pem',
                        insecure_skip_tls_verify=True)
    info = login.login(config)
    assert info.server == 'https://override:443'
    assert info.ca_path == '/other-ca.crt'
    assert info.certificate_path == '/cert.pem'
    assert info.private_key_path == '/key.pem'
    assert info.insecure is True
    assert info.token == 'tkn'


def test_overrides_do_not_leak_secrets_to_logs(kubeconfig, assert_logs):
    login.login(KubeConfig(kubeconfig=kubeconfig, api_token='very-secret'))
    assert_logs([r"Credentials overrides: \['scheme', 'token'\]"], prohibited=[r"very-secret"])


def test_no_credentials_at_all():
    with pytest.raises(LoginError):
        login.login()
