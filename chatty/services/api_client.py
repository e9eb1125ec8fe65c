# -*- coding: utf-8 -*-
"""
HTTP account API wrapper (register, login, room list).
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from chatty.config import HTTP_TIMEOUT
from chatty.models import AuthResponse, RoomList

logger = logging.getLogger(__name__)


class ApiError(RuntimeError):
    def __init__(self, message: str, *, status_code: int, error_code: str = ''):
        super().__init__(message)
        self.status_code = int(status_code)
        self.error_code = str(error_code or '')

    @property
    def is_client_error(self) -> bool:
        return 400 <= self.status_code < 500


class AccountApiClient:
    def __init__(self, base_url: str, timeout: float = HTTP_TIMEOUT):
        self.base_url = base_url.rstrip('/')
        self._client = httpx.Client(base_url=self.base_url, timeout=timeout)

    def close(self) -> None:
        self._client.close()

    def _request(
        self,
        method: str,
        path: str,
        *,
        form_data: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        response = self._client.request(
            method,
            path,
            data=form_data,
            headers=headers,
        )
        content_type = response.headers.get('content-type', '')
        payload: Any = {}
        if 'application/json' in content_type:
            payload = response.json()

        if response.status_code >= 400:
            if isinstance(payload, dict):
                message = payload.get('message') or payload.get('error') or f'HTTP {response.status_code}'
            else:
                message = f'HTTP {response.status_code}'
            logger.warning(f"API {method} {path} failed: {response.status_code} {message}")
            raise ApiError(str(message), status_code=response.status_code)

        return payload

    def register(self, username: str, password: str, confirm_password: str) -> AuthResponse:
        payload = self._request(
            'POST',
            '/register',
            form_data={
                'username': username,
                'password': password,
                'confirm_password': confirm_password,
            },
        )
        return AuthResponse.from_dict(payload)

    def login(self, username: str, password: str) -> AuthResponse:
        payload = self._request(
            'POST',
            '/login',
            form_data={'username': username, 'password': password},
        )
        return AuthResponse.from_dict(payload)

    def get_rooms(self, token: str, username: str) -> RoomList:
        payload = self._request(
            'POST',
            '/rooms',
            form_data={'username': username},
            headers={'Authorization': f'Bearer {token}'},
        )
        return RoomList.from_dict(payload)
