# -*- coding: utf-8 -*-
"""
Socket.IO realtime transport.
"""

from __future__ import annotations

import logging
from typing import Any, Callable

import socketio
from socketio import exceptions as socketio_exceptions

from chatty.config import SOCKET_TRANSPORTS

logger = logging.getLogger(__name__)


EventCallback = Callable[[dict[str, Any]], None]

# Server -> client events forwarded to local handlers
RECV_EVENTS = (
    'join_response',
    'leave_response',
    'create_response',
    'delete_response',
    'message',
)


class RealtimeTransport:
    """One Socket.IO connection, owned by a single session.

    Local handlers are registered with ``on`` and run on the Socket.IO receive
    thread, one event at a time, in network order. A handler that raises is
    logged and does not affect the others.
    """

    def __init__(self, server_url: str, transports: list[str] | None = None):
        self.server_url = server_url.rstrip('/')
        self._transports = list(transports or SOCKET_TRANSPORTS)
        self._client = socketio.Client(reconnection=False, logger=False, engineio_logger=False)
        self._handlers: dict[str, list[EventCallback]] = {}
        self._register_internal_handlers()

    def _register_internal_handlers(self) -> None:
        @self._client.on('connect')
        def _on_connect():
            logger.info(f"Socket connected: {self.server_url}")
            self._emit_local('connect', {})

        @self._client.on('disconnect')
        def _on_disconnect(*args):
            reason = str(args[0]) if args else ''
            logger.info(f"Socket disconnected: {reason or 'client'}")
            self._emit_local('disconnect', {'reason': reason})

        @self._client.on('connect_error')
        def _on_connect_error(data=None):
            logger.warning(f"Socket connect error: {data}")
            self._emit_local('connect_error', data if isinstance(data, dict) else {'message': str(data or '')})

        for event in RECV_EVENTS:
            self._client.on(event, handler=self._forwarder(event))

    def _forwarder(self, event: str) -> Callable[..., None]:
        def _forward(data=None, *_args):
            logger.debug(f"Socket recv {event}: {data}")
            self._emit_local(event, data if isinstance(data, dict) else {})

        return _forward

    def _emit_local(self, event: str, payload: dict[str, Any]) -> None:
        for callback in self._handlers.get(event, []):
            try:
                callback(payload)
            except Exception as e:
                logger.error(f"Socket handler error ({event}): {e}", exc_info=True)

    def on(self, event: str, callback: EventCallback) -> None:
        self._handlers.setdefault(event, []).append(callback)

    @property
    def connected(self) -> bool:
        return bool(self._client.connected)

    def connect(self, token: str) -> bool:
        """Open the connection with a bearer token. Returns False on failure; never raises."""
        if self.connected:
            return True

        headers = {}
        if token:
            headers['Authorization'] = f'Bearer {token}'

        try:
            self._client.connect(self.server_url, headers=headers, transports=self._transports)
            return True
        except socketio_exceptions.ConnectionError as e:
            logger.error(f"Socket connection failed: {e}")
            return False
        except ValueError as e:
            logger.error(f"Socket connection rejected: {e}")
            return False

    def disconnect(self) -> None:
        if self._client.connected:
            self._client.disconnect()

    def emit(self, event: str, payload: dict[str, Any]) -> bool:
        """Fire-and-forget. Sends while disconnected are dropped and reported as False."""
        if not self.connected:
            logger.warning(f"Socket send dropped, not connected: {event}")
            return False
        try:
            self._client.emit(event, payload)
        except socketio_exceptions.BadNamespaceError as e:
            logger.warning(f"Socket send dropped ({event}): {e}")
            return False
        logger.debug(f"Socket send {event}: {payload}")
        return True

    def create(self, room_name: str) -> bool:
        return self.emit('create', {'room': room_name})

    def send_message(self, message: str, room: str, sender: str) -> bool:
        return self.emit('message', {'message': message, 'room': room, 'sender': sender})
