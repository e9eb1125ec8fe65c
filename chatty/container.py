# -*- coding: utf-8 -*-
"""
Application wiring.
"""

from __future__ import annotations

from chatty.auth import AuthService
from chatty.config import LOG_FILE, SERVER_URL
from chatty.logging_setup import setup_logging
from chatty.services.api_client import AccountApiClient
from chatty.services.credential_store import CredentialStore
from chatty.session_controller import SessionController


class AppContainer:
    """Builds the client services once, sharing the API client and credential store."""

    def __init__(
        self,
        server_url: str = SERVER_URL,
        credential_store: CredentialStore | None = None,
        log_file: str | None = LOG_FILE,
    ):
        if log_file:
            setup_logging(log_file)
        self.server_url = server_url
        self.api = AccountApiClient(server_url)
        self.credential_store = credential_store or CredentialStore()
        self.auth = AuthService(self.api, self.credential_store)
        self.session = SessionController(self.credential_store, self.api, server_url=server_url)

    def start(self) -> None:
        self.session.start()

    def close(self) -> None:
        self.session.close()
        self.api.close()
