# -*- coding: utf-8 -*-
"""
Persistent storage for the access token and username.

Values live in the OS keyring with a JSON file fallback. Readers subscribe to
value streams: a subscriber gets the current value immediately, then every change.
"""

from __future__ import annotations

import json
import logging
import os
import threading
from typing import Any, Callable

import keyring
from keyring.errors import KeyringError

from chatty.config import APP_DATA_DIR, APP_SERVICE_NAME
from chatty.models import Credentials

logger = logging.getLogger(__name__)

APP_ACCOUNT_NAME = 'credentials'

CredentialsCallback = Callable[[Credentials], None]
ValueCallback = Callable[[str], None]


def _credentials_from_dict(data: Any) -> Credentials:
    if not isinstance(data, dict):
        return Credentials()
    return Credentials(
        token=str(data.get('access_token') or '').strip(),
        username=str(data.get('username') or '').strip(),
    )


def _credentials_to_dict(credentials: Credentials) -> dict[str, str]:
    return {
        'access_token': credentials.token,
        'username': credentials.username,
    }


class CredentialStore:
    def __init__(self, fallback_path: str | None = None):
        self._fallback_path = fallback_path or os.path.join(APP_DATA_DIR, 'credentials.json')
        self._lock = threading.RLock()
        self._listeners: list[CredentialsCallback] = []
        self._current = self._load()

    def _load(self) -> Credentials:
        raw = ''
        try:
            raw = keyring.get_password(APP_SERVICE_NAME, APP_ACCOUNT_NAME) or ''
        except KeyringError as e:
            logger.warning(f"Keyring read failed, using file fallback: {e}")

        if not raw and os.path.exists(self._fallback_path):
            with open(self._fallback_path, 'r', encoding='utf-8') as fp:
                raw = fp.read()

        if not raw:
            return Credentials()

        try:
            return _credentials_from_dict(json.loads(raw))
        except ValueError as e:
            logger.error(f"Stored credentials are unreadable: {e}")
            return Credentials()

    def _save(self, credentials: Credentials) -> None:
        raw = json.dumps(_credentials_to_dict(credentials), ensure_ascii=True)
        try:
            keyring.set_password(APP_SERVICE_NAME, APP_ACCOUNT_NAME, raw)
            return
        except KeyringError as e:
            logger.warning(f"Keyring write failed, using file fallback: {e}")

        os.makedirs(os.path.dirname(self._fallback_path), exist_ok=True)
        with open(self._fallback_path, 'w', encoding='utf-8') as fp:
            fp.write(raw)

    def get_token(self) -> str:
        return self.credentials.token

    def get_username(self) -> str:
        return self.credentials.username

    @property
    def credentials(self) -> Credentials:
        with self._lock:
            return self._current

    def set_token(self, token: str) -> None:
        self._write(Credentials(token=str(token or '').strip(), username=self.get_username()))

    def set_username(self, username: str) -> None:
        self._write(Credentials(token=self.get_token(), username=str(username or '').strip()))

    def set_credentials(self, token: str, username: str, *, force: bool = False) -> None:
        """Store both values in one write. ``force`` notifies even when nothing changed (a fresh login)."""
        self._write(
            Credentials(token=str(token or '').strip(), username=str(username or '').strip()),
            force=force,
        )

    def _write(self, credentials: Credentials, force: bool = False) -> None:
        with self._lock:
            if credentials == self._current:
                if not force:
                    return
            else:
                self._save(credentials)
            self._current = credentials
            listeners = list(self._listeners)
            for callback in listeners:
                self._deliver(callback, credentials)

    @staticmethod
    def _deliver(callback: CredentialsCallback, credentials: Credentials) -> None:
        try:
            callback(credentials)
        except Exception as e:
            logger.error(f"Credentials listener error: {e}", exc_info=True)

    def subscribe(self, callback: CredentialsCallback) -> Callable[[], None]:
        """Both values together; emits the current pair, then every change."""
        with self._lock:
            self._listeners.append(callback)
            self._deliver(callback, self._current)

        def _unsubscribe() -> None:
            with self._lock:
                if callback in self._listeners:
                    self._listeners.remove(callback)

        return _unsubscribe

    def subscribe_token(self, callback: ValueCallback) -> Callable[[], None]:
        return self._subscribe_field(callback, lambda c: c.token)

    def subscribe_username(self, callback: ValueCallback) -> Callable[[], None]:
        return self._subscribe_field(callback, lambda c: c.username)

    def _subscribe_field(self, callback: ValueCallback, getter: Callable[[Credentials], str]) -> Callable[[], None]:
        last: list[str | None] = [None]

        def _on_change(credentials: Credentials) -> None:
            value = getter(credentials)
            if value == last[0]:
                return
            last[0] = value
            callback(value)

        return self.subscribe(_on_change)
