import ipaddress

import pytest

from kdd._cogs.structs.keys import GlobalBGPPeerKey, GlobalConfigKey, GlobalConfigListOptions, \
                                   IPPoolKey, IPPoolListOptions, KVPair, PolicyKey
from kdd._cogs.structs.values import BGPPeer, IPPool, Policy, Rule
from kdd._core.errors import DatastoreError, DecodeError, ResourceAlreadyExists, \
                             ResourceDoesNotExist, ResourceUpdateConflict
from kdd._core.resources.globalbgppeers import GlobalBGPPeerClient, build_peer_name
from kdd._core.resources.globalconfigs import GlobalConfigClient
from kdd._core.resources.ippools import IPPoolClient, build_pool_name
from kdd._core.resources.systempolicies import SystemNetworkPolicyClient

CRDS_URL = '/apis/apiextensions.k8s.io/v1/customresourcedefinitions'
CONFIGS_URL = '/apis/crd.projectcalico.org/v1/globalconfigs'


@pytest.fixture()
def configs(context, settings):
    return GlobalConfigClient(context=context, settings=settings)


def make_config_body(name, value, revision='1'):
    return {
        'apiVersion': 'crd.projectcalico.org/v1',
        'kind': 'GlobalConfig',
        'metadata': {'name': name.lower(), 'resourceVersion': revision},
        'spec': {'name': name, 'value': value},
    }


#
# Naming & codecs.
#

@pytest.mark.parametrize('cidr, expected', [
    ('10.0.0.0/16', '10.0.0.0-16'),
    ('fd00::/64', 'fd00---64'),
])
def test_pool_names(cidr, expected):
    assert build_pool_name(ipaddress.ip_network(cidr)) == expected


@pytest.mark.parametrize('ip, expected', [
    ('192.168.0.1', '192.168.0.1'),
    ('fd00::1', 'fd00--1'),
])
def test_peer_names(ip, expected):
    assert build_peer_name(ipaddress.ip_address(ip)) == expected


async def test_config_names_are_lowercased_but_kept_in_spec(configs):
    kvp = KVPair(key=GlobalConfigKey(name='ClusterType'), value='KDD')
    body = configs.build_body(kvp, revision='5')
    assert body == {
        'apiVersion': 'crd.projectcalico.org/v1',
        'kind': 'GlobalConfig',
        'metadata': {'name': 'clustertype', 'resourceVersion': '5'},
        'spec': {'name': 'ClusterType', 'value': 'KDD'},
    }
    assert configs.convert(body) == KVPair(key=GlobalConfigKey(name='ClusterType'), value='KDD', revision='5')


async def test_ip_pool_body(context, settings):
    pools = IPPoolClient(context=context, settings=settings)
    cidr = ipaddress.ip_network('10.0.0.0/16')
    kvp = KVPair(key=IPPoolKey(cidr=cidr), value=IPPool(cidr=cidr, ipip_mode='always', masquerade=True))

    body = pools.build_body(kvp)

    assert body['metadata'] == {'name': '10.0.0.0-16'}
    assert body['spec'] == {'cidr': '10.0.0.0/16', 'ipipInterface': '', 'ipipMode': 'always',
                            'masquerade': True, 'ipam': True, 'disabled': False}
    assert pools.convert(body) == kvp


async def test_global_bgp_peer_body(context, settings):
    peers = GlobalBGPPeerClient(context=context, settings=settings)
    ip = ipaddress.ip_address('192.168.0.1')
    kvp = KVPair(key=GlobalBGPPeerKey(peer_ip=ip), value=BGPPeer(peer_ip=ip, as_number=64512))

    body = peers.build_body(kvp)

    assert body['metadata'] == {'name': '192.168.0.1'}
    assert body['spec'] == {'ip': '192.168.0.1', 'asNumber': 64512}
    assert peers.convert(body) == kvp


async def test_system_policy_names_drop_the_prefix(context, settings):
    policies = SystemNetworkPolicyClient(context=context, settings=settings)
    policy = Policy(order=10, selector="role == 'db'", outbound_rules=[Rule(action='allow')])
    kvp = KVPair(key=PolicyKey(name='snp.projectcalico.org/deny-all'), value=policy)

    body = policies.build_body(kvp)

    assert body['metadata'] == {'name': 'deny-all'}
    assert policies.convert(body) == kvp


async def test_malformed_objects_fail_to_convert(configs):
    with pytest.raises(DecodeError):
        configs.convert({'metadata': {'name': 'broken'}, 'spec': {}})


async def test_definition_of_the_custom_resource(configs):
    definition = configs.build_definition()
    assert definition['apiVersion'] == 'apiextensions.k8s.io/v1'
    assert definition['kind'] == 'CustomResourceDefinition'
    assert definition['metadata'] == {'name': 'globalconfigs.crd.projectcalico.org'}
    assert definition['spec']['group'] == 'crd.projectcalico.org'
    assert definition['spec']['scope'] == 'Cluster'
    assert definition['spec']['names'] == {
        'plural': 'globalconfigs', 'singular': 'globalconfig', 'kind': 'GlobalConfig'}
    assert [v['name'] for v in definition['spec']['versions']] == ['v1']


#
# Registration of the custom resources.
#

async def test_definition_is_created(
        resp_mocker, aresponses, hostname, configs, json_response, assert_logs):
    mock = resp_mocker(return_value=json_response({}, status=201))
    aresponses.add(hostname, CRDS_URL, 'post', mock)

    await configs.ensure_initialized()

    assert mock.call_count == 1
    assert mock.call_args[0][0].data == configs.build_definition()
    assert_logs([r"Custom resource globalconfigs.crd.projectcalico.org is defined."])


async def test_existing_definition_is_accepted(
        resp_mocker, aresponses, hostname, configs, status_response, assert_logs):
    mock = resp_mocker(return_value=status_response(409, reason='AlreadyExists'))
    aresponses.add(hostname, CRDS_URL, 'post', mock)

    await configs.ensure_initialized()

    assert mock.call_count == 1
    assert_logs([r"is already defined"], prohibited=[r"Failed to define", r"is defined\."])


async def test_failed_definition_is_escalated(
        resp_mocker, aresponses, hostname, configs, status_response, assert_logs):
    mock = resp_mocker(return_value=status_response(500))
    aresponses.add(hostname, CRDS_URL, 'post', mock)

    with pytest.raises(DatastoreError):
        await configs.ensure_initialized()

    assert_logs([r"Failed to define the custom resource globalconfigs.crd.projectcalico.org"])


#
# Operations on the objects.
#

async def test_create(resp_mocker, aresponses, hostname, configs, json_response):
    mock = resp_mocker(return_value=json_response(make_config_body('ClusterType', 'KDD', '7'), status=201))
    aresponses.add(hostname, CONFIGS_URL, 'post', mock)

    kvp = await configs.create(KVPair(key=GlobalConfigKey(name='ClusterType'), value='KDD'))

    assert kvp == KVPair(key=GlobalConfigKey(name='ClusterType'), value='KDD', revision='7')
    assert mock.call_args[0][0].data['metadata'] == {'name': 'clustertype'}
    assert 'resourceVersion' not in mock.call_args[0][0].data['metadata']


async def test_create_of_an_existing_object(
        resp_mocker, aresponses, hostname, configs, status_response):
    mock = resp_mocker(return_value=status_response(409, reason='AlreadyExists'))
    aresponses.add(hostname, CONFIGS_URL, 'post', mock)

    with pytest.raises(ResourceAlreadyExists):
        await configs.create(KVPair(key=GlobalConfigKey(name='ClusterType'), value='KDD'))


async def test_update_with_revision_does_not_read(
        resp_mocker, aresponses, hostname, configs, json_response):
    put_mock = resp_mocker(return_value=json_response(make_config_body('ClusterType', 'KDD', '8')))
    aresponses.add(hostname, f'{CONFIGS_URL}/clustertype', 'put', put_mock)

    kvp = await configs.update(KVPair(key=GlobalConfigKey(name='ClusterType'), value='KDD', revision='7'))

    assert kvp.revision == '8'
    assert put_mock.call_args[0][0].data['metadata'] == {'name': 'clustertype', 'resourceVersion': '7'}


async def test_update_without_revision_reads_the_current_one(
        resp_mocker, aresponses, hostname, configs, json_response):
    get_mock = resp_mocker(return_value=json_response(make_config_body('ClusterType', 'old', '6')))
    put_mock = resp_mocker(return_value=json_response(make_config_body('ClusterType', 'KDD', '7')))
    aresponses.add(hostname, f'{CONFIGS_URL}/clustertype', 'get', get_mock)
    aresponses.add(hostname, f'{CONFIGS_URL}/clustertype', 'put', put_mock)

    kvp = await configs.update(KVPair(key=GlobalConfigKey(name='ClusterType'), value='KDD'))

    assert kvp == KVPair(key=GlobalConfigKey(name='ClusterType'), value='KDD', revision='7')
    assert get_mock.call_count == 1
    assert put_mock.call_args[0][0].data['metadata']['resourceVersion'] == '6'


async def test_update_of_an_absent_object(
        resp_mocker, aresponses, hostname, configs, status_response):
    get_mock = resp_mocker(return_value=status_response(404, reason='NotFound'))
    aresponses.add(hostname, f'{CONFIGS_URL}/clustertype', 'get', get_mock)

    with pytest.raises(ResourceDoesNotExist):
        await configs.update(KVPair(key=GlobalConfigKey(name='ClusterType'), value='KDD'))


async def test_update_with_a_stale_revision(
        resp_mocker, aresponses, hostname, configs, status_response):
    put_mock = resp_mocker(return_value=status_response(409, reason='Conflict'))
    aresponses.add(hostname, f'{CONFIGS_URL}/clustertype', 'put', put_mock)

    with pytest.raises(ResourceUpdateConflict):
        await configs.update(KVPair(key=GlobalConfigKey(name='ClusterType'), value='KDD', revision='1'))


async def test_apply_of_an_existing_object_updates_it(
        resp_mocker, aresponses, hostname, configs, json_response):
    put_mock = resp_mocker(return_value=json_response(make_config_body('ClusterType', 'KDD', '8')))
    post_mock = resp_mocker(return_value=json_response({}))
    aresponses.add(hostname, f'{CONFIGS_URL}/clustertype', 'put', put_mock)
    aresponses.add(hostname, CONFIGS_URL, 'post', post_mock)

    kvp = await configs.apply(KVPair(key=GlobalConfigKey(name='ClusterType'), value='KDD', revision='7'))

    assert kvp.revision == '8'
    assert put_mock.call_count == 1
    assert post_mock.call_count == 0


async def test_apply_of_an_absent_object_creates_it(
        resp_mocker, aresponses, hostname, configs, json_response, status_response):
    get_mock = resp_mocker(return_value=status_response(404, reason='NotFound'))
    post_mock = resp_mocker(return_value=json_response(make_config_body('ClusterType', 'KDD', '1'), status=201))
    aresponses.add(hostname, f'{CONFIGS_URL}/clustertype', 'get', get_mock)
    aresponses.add(hostname, CONFIGS_URL, 'post', post_mock)

    kvp = await configs.apply(KVPair(key=GlobalConfigKey(name='ClusterType'), value='KDD'))

    assert kvp == KVPair(key=GlobalConfigKey(name='ClusterType'), value='KDD', revision='1')
    assert post_mock.call_args[0][0].data['spec'] == {'name': 'ClusterType', 'value': 'KDD'}


async def test_delete(resp_mocker, aresponses, hostname, configs, json_response):
    mock = resp_mocker(return_value=json_response({}))
    aresponses.add(hostname, f'{CONFIGS_URL}/clustertype', 'delete', mock)

    kvp = KVPair(key=GlobalConfigKey(name='ClusterType'), value='KDD')
    result = await configs.delete(kvp)

    assert result == kvp
    assert mock.call_count == 1


async def test_delete_of_an_absent_object(
        resp_mocker, aresponses, hostname, configs, status_response):
    mock = resp_mocker(return_value=status_response(404, reason='NotFound'))
    aresponses.add(hostname, f'{CONFIGS_URL}/clustertype', 'delete', mock)

    with pytest.raises(ResourceDoesNotExist):
        await configs.delete(KVPair(key=GlobalConfigKey(name='ClusterType'), value='KDD'))


async def test_get(resp_mocker, aresponses, hostname, configs, json_response):
    mock = resp_mocker(return_value=json_response(make_config_body('ClusterType', 'KDD', '3')))
    aresponses.add(hostname, f'{CONFIGS_URL}/clustertype', 'get', mock)

    kvp = await configs.get(GlobalConfigKey(name='ClusterType'))

    assert kvp == KVPair(key=GlobalConfigKey(name='ClusterType'), value='KDD', revision='3')


async def test_get_of_an_absent_object(
        resp_mocker, aresponses, hostname, configs, status_response):
    mock = resp_mocker(return_value=status_response(404, reason='NotFound'))
    aresponses.add(hostname, f'{CONFIGS_URL}/clustertype', 'get', mock)

    with pytest.raises(ResourceDoesNotExist) as err:
        await configs.get(GlobalConfigKey(name='ClusterType'))

    assert err.value.identifier == GlobalConfigKey(name='ClusterType')


async def test_empty_names_do_not_exist(resp_mocker, aresponses, hostname, configs, json_response):
    mock = resp_mocker(return_value=json_response({'kind': 'GlobalConfigList', 'items': []}))
    aresponses.add(hostname, CONFIGS_URL, 'get', mock)
    kvp = KVPair(key=GlobalConfigKey(name=''), value='x', revision='1')

    with pytest.raises(ResourceDoesNotExist):
        await configs.get(GlobalConfigKey(name=''))
    with pytest.raises(ResourceDoesNotExist):
        await configs.update(kvp)
    with pytest.raises(ResourceDoesNotExist):
        await configs.delete(kvp)

    assert not mock.called


async def test_list_by_exact_name(resp_mocker, aresponses, hostname, configs, json_response):
    mock = resp_mocker(return_value=json_response(make_config_body('ClusterType', 'KDD', '3')))
    aresponses.add(hostname, f'{CONFIGS_URL}/clustertype', 'get', mock)

    kvps, revision = await configs.list(GlobalConfigListOptions(name='ClusterType'))

    assert kvps == [KVPair(key=GlobalConfigKey(name='ClusterType'), value='KDD', revision='3')]
    assert revision == '3'


async def test_list_by_exact_name_of_an_absent_object(
        resp_mocker, aresponses, hostname, configs, status_response):
    mock = resp_mocker(return_value=status_response(404, reason='NotFound'))
    aresponses.add(hostname, f'{CONFIGS_URL}/clustertype', 'get', mock)

    kvps, revision = await configs.list(GlobalConfigListOptions(name='ClusterType'))

    assert kvps == []
    assert revision is None


async def test_list_all(resp_mocker, aresponses, hostname, configs, json_response):
    mock = resp_mocker(return_value=json_response({
        'apiVersion': 'crd.projectcalico.org/v1',
        'kind': 'GlobalConfigList',
        'metadata': {'resourceVersion': '100'},
        'items': [make_config_body('ClusterType', 'KDD', '3'),
                  make_config_body('LogLevel', 'info', '4')],
    }))
    aresponses.add(hostname, CONFIGS_URL, 'get', mock)

    kvps, revision = await configs.list(GlobalConfigListOptions())

    assert kvps == [
        KVPair(key=GlobalConfigKey(name='ClusterType'), value='KDD', revision='3'),
        KVPair(key=GlobalConfigKey(name='LogLevel'), value='info', revision='4'),
    ]
    assert revision == '100'


async def test_list_of_ip_pools_by_cidr(
        resp_mocker, aresponses, hostname, context, settings, json_response):
    pools = IPPoolClient(context=context, settings=settings)
    mock = resp_mocker(return_value=json_response({
        'metadata': {'name': '10.0.0.0-16', 'resourceVersion': '5'},
        'spec': {'cidr': '10.0.0.0/16', 'ipipMode': 'cross-subnet'},
    }))
    aresponses.add(hostname, '/apis/crd.projectcalico.org/v1/ippools/10.0.0.0-16', 'get', mock)

    cidr = ipaddress.ip_network('10.0.0.0/16')
    kvps, _ = await pools.list(IPPoolListOptions(cidr=cidr))

    assert kvps == [KVPair(key=IPPoolKey(cidr=cidr),
                           value=IPPool(cidr=cidr, ipip_mode='cross-subnet'),
                           revision='5')]
