# -*- coding: utf-8 -*-

from __future__ import annotations

from concurrent.futures import Future

import pytest

import chatty.services.credential_store as credential_store_module
from chatty.models import Room, RoomList
from chatty.services.credential_store import CredentialStore
from chatty.session_controller import SessionController


class DummyKeyring:
    def __init__(self, stored_value: str = ''):
        self.stored_value = stored_value
        self.deleted = False

    def get_password(self, _service: str, _account: str) -> str:
        return self.stored_value

    def set_password(self, _service: str, _account: str, value: str) -> None:
        self.stored_value = value

    def delete_password(self, _service: str, _account: str) -> None:
        self.deleted = True
        self.stored_value = ''


class FakeTransport:
    def __init__(self, server_url: str):
        self.server_url = server_url
        self.handlers: dict[str, list] = {}
        self.sent: list[tuple[str, dict]] = []
        self.connected = False
        self.connect_tokens: list[str] = []
        self.disconnect_calls = 0
        self.fail_connect = False

    def on(self, event, callback):
        self.handlers.setdefault(event, []).append(callback)

    def connect(self, token: str) -> bool:
        self.connect_tokens.append(token)
        if self.fail_connect:
            return False
        self.connected = True
        self.deliver('connect', {})
        return True

    def disconnect(self) -> None:
        if not self.connected:
            return
        self.connected = False
        self.disconnect_calls += 1
        self.deliver('disconnect', {})

    def emit(self, event: str, payload: dict) -> bool:
        if not self.connected:
            return False
        self.sent.append((event, dict(payload)))
        return True

    def create(self, room_name: str) -> bool:
        return self.emit('create', {'room': room_name})

    def send_message(self, message: str, room: str, sender: str) -> bool:
        return self.emit('message', {'message': message, 'room': room, 'sender': sender})

    def deliver(self, event: str, payload: dict) -> None:
        for callback in list(self.handlers.get(event, [])):
            callback(payload)


class FakeApi:
    def __init__(self):
        self.rooms = RoomList(own=(Room('abc123', 'R1'),), others=(Room('def456', 'R2'),))
        self.error: Exception | None = None
        self.calls: list[tuple[str, str]] = []

    def get_rooms(self, token: str, username: str) -> RoomList:
        self.calls.append((token, username))
        if self.error is not None:
            raise self.error
        return self.rooms


class ImmediateExecutor:
    def submit(self, fn, *args, **kwargs) -> Future:
        future: Future = Future()
        try:
            future.set_result(fn(*args, **kwargs))
        except Exception as exc:
            future.set_exception(exc)
        return future

    def shutdown(self, wait: bool = True) -> None:
        pass


class DeferredExecutor:
    """Holds submitted work until ``run_all`` so completion order can be forced."""

    def __init__(self):
        self.pending: list[tuple[Future, object, tuple]] = []

    def submit(self, fn, *args, **kwargs) -> Future:
        future: Future = Future()
        self.pending.append((future, fn, args))
        return future

    def run_all(self) -> None:
        pending, self.pending = self.pending, []
        for future, fn, args in pending:
            try:
                future.set_result(fn(*args))
            except Exception as exc:
                future.set_exception(exc)

    def shutdown(self, wait: bool = True) -> None:
        pass


@pytest.fixture
def keyring_stub(monkeypatch):
    stub = DummyKeyring()
    monkeypatch.setattr(credential_store_module, 'keyring', stub)
    return stub


@pytest.fixture
def credential_store(keyring_stub, tmp_path):
    return CredentialStore(fallback_path=str(tmp_path / 'credentials.json'))


@pytest.fixture
def fake_api():
    return FakeApi()


@pytest.fixture
def transports():
    return []


@pytest.fixture
def controller(credential_store, fake_api, transports):
    def _factory(server_url: str) -> FakeTransport:
        transport = FakeTransport(server_url)
        transports.append(transport)
        return transport

    ctrl = SessionController(
        credential_store,
        fake_api,
        server_url='http://chat.test',
        transport_factory=_factory,
        executor=ImmediateExecutor(),
    )
    ctrl.start()
    return ctrl
