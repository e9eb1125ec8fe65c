# -*- coding: utf-8 -*-
"""
Login and registration flows.

Input is validated before any request is made. A successful response writes the
token and username to the credential store in one step; the session controller
picks the session up from there.
"""

from __future__ import annotations

import logging

from chatty.models import AuthResponse
from chatty.services.api_client import AccountApiClient, ApiError
from chatty.services.credential_store import CredentialStore

logger = logging.getLogger(__name__)

USERNAME_MIN_LENGTH = 4
USERNAME_MAX_LENGTH = 10
PASSWORD_MIN_LENGTH = 8


class ValidationError(ValueError):
    def __init__(self, errors: list[str]):
        super().__init__('; '.join(errors))
        self.errors = list(errors)


def validate_login(username: str, password: str) -> list[str]:
    if not username and not password:
        return ['Username and password cannot be empty.']
    if not username:
        return ['Username cannot be empty.']
    if not password:
        return ['Password cannot be empty.']
    return []


def validate_register(username: str, password: str, confirm_password: str) -> list[str]:
    errors: list[str] = []
    if not USERNAME_MIN_LENGTH <= len(username) <= USERNAME_MAX_LENGTH:
        errors.append('Username length should be between 4 to 10 characters.')
    if password != confirm_password:
        errors.append('Passwords must match.')
    if len(password) < PASSWORD_MIN_LENGTH:
        errors.append('Password length must be greater than 8.')
    return errors


class AuthService:
    def __init__(self, api: AccountApiClient, credential_store: CredentialStore):
        self.api = api
        self.credential_store = credential_store

    def login(self, username: str, password: str) -> AuthResponse:
        errors = validate_login(username, password)
        if errors:
            raise ValidationError(errors)
        info = self.api.login(username, password)
        logger.info(f"Login response: error={info.error}, username={info.username}")
        return self._accept(info)

    def register(self, username: str, password: str, confirm_password: str) -> AuthResponse:
        errors = validate_register(username, password, confirm_password)
        if errors:
            raise ValidationError(errors)
        info = self.api.register(username, password, confirm_password)
        logger.info(f"Register response: error={info.error}, username={info.username}")
        return self._accept(info)

    def _accept(self, info: AuthResponse) -> AuthResponse:
        if info.error:
            # business error reported with a 2xx status
            raise ApiError(info.message or 'Request failed', status_code=200)
        if info.access_token and info.username:
            self.credential_store.set_credentials(info.access_token, info.username, force=True)
        return info
