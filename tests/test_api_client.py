# -*- coding: utf-8 -*-

import pytest

from chatty.models import Room
from chatty.services.api_client import AccountApiClient, ApiError


class _Resp:
    def __init__(self, status_code: int, payload: dict | None = None, content_type: str = 'application/json'):
        self.status_code = status_code
        self._payload = payload or {}
        self.headers = {'content-type': content_type}

    def json(self):
        return dict(self._payload)


def test_login_posts_form_fields(monkeypatch):
    api = AccountApiClient('http://localhost:3000/')
    calls = []

    def _request(method, path, **kwargs):
        calls.append((method, path, kwargs))
        return _Resp(200, {'error': False, 'message': 'ok', 'username': 'bob', 'access_token': 'tok'})

    monkeypatch.setattr(api._client, 'request', _request)

    info = api.login('bob', 'secret123')

    assert calls == [('POST', '/login', {'data': {'username': 'bob', 'password': 'secret123'}, 'headers': None})]
    assert info.error is False
    assert info.access_token == 'tok'
    assert info.username == 'bob'


def test_register_sends_confirm_password(monkeypatch):
    api = AccountApiClient('http://localhost:3000')
    calls = []

    def _request(method, path, **kwargs):
        calls.append((path, kwargs['data']))
        return _Resp(200, {'error': True, 'message': 'Username taken'})

    monkeypatch.setattr(api._client, 'request', _request)

    info = api.register('bob', 'secret123', 'secret123')

    assert calls == [('/register', {'username': 'bob', 'password': 'secret123', 'confirm_password': 'secret123'})]
    assert info.error is True
    assert info.message == 'Username taken'
    assert info.access_token == ''


def test_get_rooms_sends_bearer_and_parses_lists(monkeypatch):
    api = AccountApiClient('http://localhost:3000')
    calls = []

    def _request(method, path, **kwargs):
        calls.append((method, path, kwargs))
        return _Resp(200, {
            'own': [{'id': 'abc123', 'name': 'R1'}],
            'others': [{'id': 'def456', 'name': 'R2'}, {'name': 'no id'}],
        })

    monkeypatch.setattr(api._client, 'request', _request)

    rooms = api.get_rooms('tok', 'bob')

    method, path, kwargs = calls[0]
    assert (method, path) == ('POST', '/rooms')
    assert kwargs['headers'] == {'Authorization': 'Bearer tok'}
    assert kwargs['data'] == {'username': 'bob'}
    assert rooms.own == (Room('abc123', 'R1'),)
    assert rooms.others == (Room('def456', 'R2'),)


@pytest.mark.parametrize('status_code, client_error', [(401, True), (403, True), (500, False), (503, False)])
def test_error_status_raises_api_error(monkeypatch, status_code, client_error):
    api = AccountApiClient('http://localhost:3000')
    monkeypatch.setattr(api._client, 'request', lambda *args, **kwargs: _Resp(status_code, {'message': 'nope'}))

    with pytest.raises(ApiError) as exc_info:
        api.get_rooms('tok', 'bob')

    assert exc_info.value.status_code == status_code
    assert exc_info.value.is_client_error is client_error
    assert str(exc_info.value) == 'nope'


def test_error_without_json_body_uses_status(monkeypatch):
    api = AccountApiClient('http://localhost:3000')
    monkeypatch.setattr(
        api._client,
        'request',
        lambda *args, **kwargs: _Resp(502, content_type='text/html'),
    )

    with pytest.raises(ApiError, match='HTTP 502'):
        api.login('bob', 'secret123')
