import ipaddress

import pytest

from kdd._cogs.structs.keys import KVPair, NodeKey, NodeListOptions
from kdd._cogs.structs.values import Node
from kdd._core.errors import OperationNotSupported, ResourceDoesNotExist
from kdd._core.resources.nodes import NodeClient


@pytest.fixture()
def nodes(context, settings):
    return NodeClient(context=context, settings=settings)


def make_node(name='node1', revision='1', annotations=None):
    return {
        'metadata': {'name': name, 'resourceVersion': revision, 'annotations': annotations or {}},
        'status': {'addresses': [{'type': 'InternalIP', 'address': '10.1.1.1'}]},
    }


async def test_create_is_not_supported(nodes):
    with pytest.raises(OperationNotSupported):
        await nodes.create(KVPair(key=NodeKey(hostname='node1'), value=Node()))


async def test_delete_is_not_supported(nodes):
    with pytest.raises(OperationNotSupported):
        await nodes.delete(KVPair(key=NodeKey(hostname='node1'), value=Node()))


@pytest.mark.parametrize('method', ['update', 'apply'])
async def test_bgp_settings_are_patched_as_annotations(
        resp_mocker, aresponses, hostname, nodes, json_response, method):
    annotations = {'projectcalico.org/IPv4Address': '10.1.1.1/24',
                   'projectcalico.org/ASNumber': '64512'}
    mock = resp_mocker(return_value=json_response(make_node(revision='2', annotations=annotations)))
    aresponses.add(hostname, '/api/v1/nodes/node1', 'patch', mock)

    value = Node(bgp_ipv4_address=ipaddress.IPv4Address('10.1.1.1'),
                 bgp_ipv4_network=ipaddress.IPv4Network('10.1.1.0/24'),
                 bgp_as_number=64512)
    kvp = await getattr(nodes, method)(KVPair(key=NodeKey(hostname='node1'), value=value))

    assert mock.call_args[0][0].headers['Content-Type'] == 'application/merge-patch+json'
    assert mock.call_args[0][0].data == {'metadata': {'annotations': annotations}}
    assert kvp.revision == '2'
    assert kvp.value.bgp_ipv4_address == ipaddress.IPv4Address('10.1.1.1')
    assert kvp.value.bgp_as_number == 64512
    assert kvp.value.felix_ipv4 == ipaddress.IPv4Address('10.1.1.1')


async def test_update_of_an_absent_node(
        resp_mocker, aresponses, hostname, nodes, status_response):
    mock = resp_mocker(return_value=status_response(404, reason='NotFound'))
    aresponses.add(hostname, '/api/v1/nodes/node1', 'patch', mock)

    with pytest.raises(ResourceDoesNotExist):
        await nodes.update(KVPair(key=NodeKey(hostname='node1'), value=Node()))


async def test_get(resp_mocker, aresponses, hostname, nodes, json_response):
    mock = resp_mocker(return_value=json_response(make_node(revision='5')))
    aresponses.add(hostname, '/api/v1/nodes/node1', 'get', mock)

    kvp = await nodes.get(NodeKey(hostname='node1'))

    assert kvp.key == NodeKey(hostname='node1')
    assert kvp.revision == '5'


async def test_list_by_hostname_of_an_absent_node(
        resp_mocker, aresponses, hostname, nodes, status_response):
    mock = resp_mocker(return_value=status_response(404, reason='NotFound'))
    aresponses.add(hostname, '/api/v1/nodes/node1', 'get', mock)

    kvps, revision = await nodes.list(NodeListOptions(hostname='node1'))

    assert kvps == []
    assert revision is None


async def test_list_all(resp_mocker, aresponses, hostname, nodes, json_response):
    mock = resp_mocker(return_value=json_response({
        'kind': 'NodeList', 'apiVersion': 'v1', 'metadata': {'resourceVersion': '99'},
        'items': [make_node('node1'), make_node('node2')],
    }))
    aresponses.add(hostname, '/api/v1/nodes', 'get', mock)

    kvps, revision = await nodes.list(NodeListOptions())

    assert [kvp.key for kvp in kvps] == [NodeKey(hostname='node1'), NodeKey(hostname='node2')]
    assert revision == '99'


async def test_empty_hostnames_do_not_exist(resp_mocker, aresponses, hostname, nodes, json_response):
    mock = resp_mocker(return_value=json_response({'kind': 'NodeList', 'items': [make_node()]}))
    aresponses.add(hostname, '/api/v1/nodes', 'get', mock)

    with pytest.raises(ResourceDoesNotExist):
        await nodes.get(NodeKey(hostname=''))
    with pytest.raises(ResourceDoesNotExist):
        await nodes.update(KVPair(key=NodeKey(hostname=''), value=Node()))

    assert not mock.called
