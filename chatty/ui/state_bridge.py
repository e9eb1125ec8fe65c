# -*- coding: utf-8 -*-
"""
Qt bridge between the session controller and the widgets.
"""

from __future__ import annotations

import logging

import httpx
from PySide6.QtCore import QObject, Signal, Slot

from chatty.auth import AuthService, ValidationError
from chatty.models import AppState
from chatty.services.api_client import ApiError
from chatty.session_controller import SessionController

logger = logging.getLogger(__name__)


class SessionStateBridge(QObject):
    """Re-emits controller snapshots as Qt signals.

    Snapshots are published from whatever thread committed them (often the
    Socket.IO receive thread); Qt queues the signal onto the receiver's thread,
    so widgets only ever redraw on the GUI thread. Widget intents come back in
    through the slots.
    """

    state_changed = Signal(object)  # AppState
    status_changed = Signal(str)
    messages_changed = Signal(object)  # tuple[Message, ...]
    rooms_changed = Signal(object)  # RoomList
    auth_errors = Signal(list)

    def __init__(self, controller: SessionController, auth: AuthService | None = None, parent=None):
        super().__init__(parent)
        self.controller = controller
        self.auth = auth
        self._last: AppState | None = None
        self._unsubscribe = controller.subscribe(self._on_state)

    def _on_state(self, state: AppState) -> None:
        previous = self._last
        self._last = state
        self.state_changed.emit(state)
        if previous is None or previous.status != state.status:
            self.status_changed.emit(state.status)
        if previous is None or previous.log != state.log:
            self.messages_changed.emit(state.log.messages)
        if previous is None or previous.rooms != state.rooms:
            self.rooms_changed.emit(state.rooms)

    def detach(self) -> None:
        self._unsubscribe()

    @Slot(str, str)
    def login(self, username: str, password: str) -> None:
        if self.auth is None:
            return
        try:
            self.auth.login(username, password)
        except ValidationError as e:
            self.auth_errors.emit(e.errors)
        except ApiError as e:
            logger.warning(f"Login failed: {e}")
            self.auth_errors.emit([str(e)])
        except httpx.HTTPError as e:
            logger.error(f"Login request failed: {e}")
            self.auth_errors.emit(['Network error. Please try again.'])

    @Slot(str, str, str)
    def register(self, username: str, password: str, confirm_password: str) -> None:
        if self.auth is None:
            return
        try:
            self.auth.register(username, password, confirm_password)
        except ValidationError as e:
            self.auth_errors.emit(e.errors)
        except ApiError as e:
            logger.warning(f"Register failed: {e}")
            self.auth_errors.emit([str(e)])
        except httpx.HTTPError as e:
            logger.error(f"Register request failed: {e}")
            self.auth_errors.emit(['Network error. Please try again.'])

    @Slot(str)
    def join_room(self, room_id: str) -> None:
        self.controller.join_room(room_id)

    @Slot()
    def leave_room(self) -> None:
        self.controller.leave_room()

    @Slot(str)
    def create_room(self, name: str) -> None:
        self.controller.create_room(name)

    @Slot(str)
    def delete_room(self, room_id: str) -> None:
        self.controller.delete_room(room_id)

    @Slot(str)
    def update_draft(self, text: str) -> None:
        self.controller.update_draft(text)

    @Slot()
    def send_message(self) -> None:
        self.controller.send_message()

    @Slot()
    def logout(self) -> None:
        self.controller.logout()

    @Slot(bool)
    def set_foreground(self, active: bool) -> None:
        if active:
            if self.controller.state.membership.joined:
                self.controller.rejoin()
        else:
            self.controller.suspend()
