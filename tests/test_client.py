"""
Test: Gateway client, with requests patched out.

Run with: pytest tests/test_client.py
"""

from pathlib import Path
from unittest import mock

import requests

import client


def fake_response(status_code, payload):
    response = mock.Mock()
    response.status_code = status_code
    response.json.return_value = payload
    return response


def test_locate_calls_gateway():
    payload = {'key': 'event_1234', 'position': 4253464409, 'server': 'server2'}
    with mock.patch.object(client.requests, 'get', return_value=fake_response(200, payload)) as get:
        assert client.locate('event_1234') == payload

    url = get.call_args[0][0]
    assert url == f"{client.GATEWAY_URL}/locate/event_1234"


def test_locate_reports_empty_ring(capsys):
    payload = {'error': 'No servers registered on the ring.'}
    with mock.patch.object(client.requests, 'get', return_value=fake_response(503, payload)):
        assert client.locate('event_1234') == payload
    assert 'Register a server first' in capsys.readouterr().out


def test_connection_error_returns_none(capsys):
    error = requests.exceptions.ConnectionError('refused')
    with mock.patch.object(client.requests, 'get', side_effect=error):
        assert client.locate('event_1234') is None
        assert client.show_ring('password') is None
    assert 'Could not connect' in capsys.readouterr().out


def test_add_and_remove_server_send_token():
    payload = {'message': 'ok', 'active_servers': ['server1']}
    with mock.patch.object(client.requests, 'post', return_value=fake_response(200, payload)) as post:
        assert client.add_server('server1', 'secret') == payload
        assert client.remove_server('server1', 'secret') == payload

    register_call, deregister_call = post.call_args_list
    assert register_call[0][0].endswith('/register_server')
    assert deregister_call[0][0].endswith('/deregister_server')
    assert register_call[1]['json'] == {'server_id': 'server1'}
    assert register_call[1]['headers']['X-Admin-Token'] == 'secret'


def test_distribution_passes_sample_count():
    payload = {'sample_count': 50, 'distribution': {}}
    with mock.patch.object(client.requests, 'get', return_value=fake_response(200, payload)) as get:
        assert client.get_distribution('secret', 50) == payload
    assert get.call_args[1]['params'] == {'samples': 50}


def test_main_dispatch():
    with mock.patch.object(client, 'locate') as locate:
        assert client.main(['locate', 'event_1234']) == 0
    locate.assert_called_once_with('event_1234')

    with mock.patch.object(client, 'get_distribution') as get_distribution:
        assert client.main(['distribution', 'secret', '200']) == 0
    get_distribution.assert_called_once_with('secret', 200)


def test_main_rejects_bad_arguments(capsys):
    assert client.main([]) == 1
    assert client.main(['locate']) == 1
    assert client.main(['distribution', 'secret', 'many']) == 1
    assert 'Usage' in capsys.readouterr().out


def test_locate_sends_reserved_characters_intact(gateway_client, gateway_ring):
    gateway_ring.add_server('server1')
    gateway_ring.add_server('server2')

    def route_to_gateway(url, **kwargs):
        assert url.startswith(client.GATEWAY_URL)
        response = gateway_client.get(url[len(client.GATEWAY_URL):])
        return fake_response(response.status_code, response.get_json())

    with mock.patch.object(client.requests, 'get', side_effect=route_to_gateway):
        for key in ('user?id=7', 'page#top', 'event%31', 'a/b c'):
            data = client.locate(key)
            assert data['key'] == key
            assert data['server'] == gateway_ring.get_server(key)


def test_urllib3_is_a_declared_dependency():
    pyproject = Path(__file__).resolve().parent.parent / 'pyproject.toml'
    assert '"urllib3"' in pyproject.read_text()
