# -*- coding: utf-8 -*-
"""
Chat session controller.

Owns the realtime transport for the current session, turns user intents into wire
events, and applies server acknowledgements to the room membership, message log
and room list held in the ``StateStore``.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import CancelledError, Executor, Future, ThreadPoolExecutor
from dataclasses import replace
from typing import Any, Callable

import httpx

from chatty import membership as machine
from chatty import message_log
from chatty.config import ROOM_FETCH_WORKERS, SERVER_URL
from chatty.membership import MembershipError, Outgoing
from chatty.models import AppState, Credentials, RoomList, Session, SessionPhase
from chatty.services.api_client import AccountApiClient, ApiError
from chatty.services.credential_store import CredentialStore
from chatty.services.socket_client import RealtimeTransport
from chatty.state_store import StateListener, StateStore

logger = logging.getLogger(__name__)

STATUS_CONNECTING = 'Connecting... May be the server is booting up!'
STATUS_CONNECTED = 'Connected Successfully!'
STATUS_CONNECTION_FAILED = 'Connection failed. Please try again.'
STATUS_NOT_CONNECTED = 'Not connected to server.'
STATUS_DISCONNECTED = 'Disconnected from server. Please log in again.'
STATUS_NOT_LOGGED_IN = 'Please log in first.'
STATUS_JOIN_FIRST = 'Join a room first.'
STATUS_EMPTY_MESSAGE = 'Message cannot be empty.'
STATUS_ROOM_NAME_REQUIRED = 'Room name cannot be empty.'
STATUS_FORBIDDEN = 'FORBIDDEN'
STATUS_SERVER_ERROR = 'SERVER ERROR'
STATUS_JOIN_FAILED = 'Could not join the room.'
STATUS_LOGGED_OUT = 'Logged out.'

TransportFactory = Callable[[str], RealtimeTransport]


class SessionController:
    def __init__(
        self,
        credential_store: CredentialStore,
        api: AccountApiClient,
        *,
        server_url: str = SERVER_URL,
        transport_factory: TransportFactory | None = None,
        executor: Executor | None = None,
        store: StateStore | None = None,
    ):
        self.credential_store = credential_store
        self.api = api
        self.server_url = server_url
        self.store = store or StateStore()
        self._transport_factory = transport_factory or RealtimeTransport
        self._executor = executor or ThreadPoolExecutor(
            max_workers=ROOM_FETCH_WORKERS,
            thread_name_prefix='chatty-rooms',
        )
        self._transport: RealtimeTransport | None = None
        self._transport_lock = threading.Lock()
        self._unsubscribe_credentials: Callable[[], None] | None = None

    # ------------------------------------------------------------------
    # Observation
    # ------------------------------------------------------------------

    @property
    def state(self) -> AppState:
        return self.store.state

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        return self.store.subscribe(listener)

    def is_joined(self, room_id: str) -> bool:
        membership = self.state.membership
        return membership.joined and membership.current_room_id == room_id

    # ------------------------------------------------------------------
    # Session lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        if self._unsubscribe_credentials is None:
            self._unsubscribe_credentials = self.credential_store.subscribe(self._on_credentials)

    def close(self) -> None:
        if self._unsubscribe_credentials is not None:
            self._unsubscribe_credentials()
            self._unsubscribe_credentials = None
        transport = self._swap_transport(None)
        if transport is not None:
            transport.disconnect()
        self._executor.shutdown(wait=False)

    def _swap_transport(self, transport: RealtimeTransport | None) -> RealtimeTransport | None:
        with self._transport_lock:
            previous = self._transport
            self._transport = transport
            return previous

    def _on_credentials(self, credentials: Credentials) -> None:
        session = self.state.session
        if not credentials.token:
            if session.authenticated:
                logger.info("Access token cleared; ending session")
                self._end_session(STATUS_LOGGED_OUT)
            return

        if not session.authenticated or credentials.token != session.access_token:
            self._begin_session(credentials)
            return

        if credentials.username and credentials.username != session.username:
            self.store.update(lambda state: replace(
                state,
                session=replace(state.session, phase=SessionPhase.LOGGED_IN, username=credentials.username),
            ))
            self.refresh_rooms()

    def _begin_session(self, credentials: Credentials) -> None:
        previous = self._swap_transport(None)
        if previous is not None:
            previous.disconnect()

        phase = SessionPhase.LOGGED_IN if credentials.username else SessionPhase.LOGGING_IN
        state = self.store.update(lambda state: replace(
            AppState(),
            session=Session(
                phase=phase,
                access_token=credentials.token,
                username=credentials.username,
                epoch=state.session.epoch + 1,
            ),
            status=STATUS_CONNECTING,
        ))
        logger.info(f"Session started: user={credentials.username or '?'}, epoch={state.session.epoch}")

        transport = self._transport_factory(self.server_url)
        self._bind_transport(transport)
        self._swap_transport(transport)

        if not transport.connect(credentials.token):
            self._update_if_current(transport, lambda state: replace(state, status=STATUS_CONNECTION_FAILED))

        if credentials.username:
            self.refresh_rooms()

    def _end_session(self, status: str) -> None:
        transport = self._swap_transport(None)

        def _apply(state: AppState) -> AppState:
            _, outgoing = machine.logout(state.membership)
            if outgoing is not None and transport is not None:
                transport.emit(outgoing.event, outgoing.payload)
            return replace(
                AppState(),
                session=Session(epoch=state.session.epoch + 1),
                status=status,
            )

        self.store.update(_apply)
        if transport is not None:
            transport.disconnect()

    def logout(self) -> None:
        logger.info("Logout requested")
        self._end_session(STATUS_LOGGED_OUT)
        self.credential_store.set_token('')

    # ------------------------------------------------------------------
    # Transport events
    # ------------------------------------------------------------------

    def _bind_transport(self, transport: RealtimeTransport) -> None:
        handlers = {
            'connect': self._on_socket_connect,
            'disconnect': self._on_socket_disconnect,
            'connect_error': self._on_socket_connect_error,
            'join_response': self._on_join_response,
            'leave_response': self._on_leave_response,
            'create_response': self._on_create_response,
            'delete_response': self._on_delete_response,
            'message': self._on_socket_message,
        }
        for event, handler in handlers.items():
            transport.on(event, self._guarded(transport, event, handler))

    def _guarded(
        self,
        transport: RealtimeTransport,
        event: str,
        handler: Callable[[dict[str, Any]], None],
    ) -> Callable[[dict[str, Any]], None]:
        def _dispatch(payload: dict[str, Any]) -> None:
            with self.store.lock:
                if transport is not self._transport:
                    logger.debug(f"Ignoring {event} from a closed transport")
                    return
                handler(payload)

        return _dispatch

    def _update_if_current(self, transport: RealtimeTransport, updater: Callable[[AppState], AppState]) -> None:
        def _apply(state: AppState) -> AppState:
            if transport is not self._transport:
                return state
            return updater(state)

        self.store.update(_apply)

    def _on_socket_connect(self, _payload: dict[str, Any]) -> None:
        self.store.update(lambda state: replace(state, connected=True, status=STATUS_CONNECTED))

    def _on_socket_disconnect(self, _payload: dict[str, Any]) -> None:
        # no reconnect; an unanswered request must not block later room actions
        self.store.update(lambda state: replace(
            state,
            connected=False,
            membership=machine.clear_pending(state.membership),
            pending_deletes=(),
            status=STATUS_DISCONNECTED,
        ))

    def _on_socket_connect_error(self, payload: dict[str, Any]) -> None:
        message = str(payload.get('message') or '').strip()
        status = f'Connection error: {message}' if message else STATUS_CONNECTION_FAILED
        self.store.update(lambda state: replace(state, status=status))

    def _on_join_response(self, payload: dict[str, Any]) -> None:
        room_id = str(payload.get('roomId') or '')
        room_name = str(payload.get('roomName') or '')
        message = str(payload.get('message') or '')

        if payload.get('error') or not room_id.strip():
            # rejected join: current room stays, the request is no longer pending
            logger.warning(f"Join rejected: {message or payload}")
            self.store.update(lambda state: replace(
                state,
                membership=machine.clear_pending(state.membership),
                status=message or STATUS_JOIN_FAILED,
            ))
            return

        def _apply(state: AppState) -> AppState:
            transition = machine.apply_join_response(state.membership, room_id, room_name)
            log = message_log.reset(room_id) if transition.reset_log else state.log
            return replace(state, membership=transition.membership, log=log, status=message)

        self.store.update(_apply)
        logger.info(f"Joined room {room_name} ({room_id})")
        self.refresh_rooms()

    def _on_leave_response(self, payload: dict[str, Any]) -> None:
        message = str(payload.get('message') or '')

        def _apply(state: AppState) -> AppState:
            transition = machine.apply_leave_response(state.membership)
            return replace(state, membership=transition.membership, log=message_log.reset(), status=message)

        self.store.update(_apply)
        self.refresh_rooms()

    def _on_create_response(self, payload: dict[str, Any]) -> None:
        message = str(payload.get('message') or '')
        self.store.update(lambda state: replace(state, status=message))
        self.refresh_rooms()

    def _on_delete_response(self, payload: dict[str, Any]) -> None:
        error = bool(payload.get('error', False))
        message = str(payload.get('message') or '')

        def _apply(state: AppState) -> AppState:
            deleted_room_id = state.pending_deletes[0] if state.pending_deletes else ''
            transition = machine.apply_delete_response(state.membership, deleted_room_id, error)
            log = message_log.reset() if transition.reset_log else state.log
            return replace(
                state,
                membership=transition.membership,
                log=log,
                pending_deletes=state.pending_deletes[1:],
                status=message,
            )

        self.store.update(_apply)
        if error:
            logger.warning(f"Room delete rejected: {message}")
            return
        self.refresh_rooms()

    def _on_socket_message(self, payload: dict[str, Any]) -> None:
        def _apply(state: AppState) -> AppState:
            if not state.membership.joined:
                logger.debug("Message received outside a room; dropped")
                return state
            message = message_log.message_from_payload(payload, state.session.username)
            if message is None:
                logger.warning(f"Malformed message payload: {payload}")
                return state
            return replace(state, log=message_log.append(state.log, message))

        self.store.update(_apply)

    # ------------------------------------------------------------------
    # User intents
    # ------------------------------------------------------------------

    def _send(self, outgoing: Outgoing) -> bool:
        transport = self._transport
        if transport is None:
            return False
        return transport.emit(outgoing.event, outgoing.payload)

    def _membership_intent(self, request: Callable[[AppState], tuple[Any, Outgoing]]) -> None:
        def _apply(state: AppState) -> AppState:
            if not state.session.authenticated:
                return replace(state, status=STATUS_NOT_LOGGED_IN)
            try:
                membership, outgoing = request(state)
            except MembershipError as e:
                logger.info(f"Room action rejected: {e}")
                return replace(state, status=str(e))
            if not self._send(outgoing):
                return replace(state, status=STATUS_NOT_CONNECTED)
            return replace(state, membership=membership)

        self.store.update(_apply)

    def join_room(self, room_id: str) -> None:
        self._membership_intent(lambda state: machine.request_join(state.membership, room_id))

    def rejoin(self) -> None:
        self._membership_intent(lambda state: machine.request_rejoin(state.membership))

    def leave_room(self) -> None:
        self._membership_intent(lambda state: machine.request_leave(state.membership))

    def suspend(self) -> None:
        """Soft-leave the current room while the app is in the background."""
        outgoing = machine.temp_leave(self.state.membership)
        if outgoing is not None:
            self._send(outgoing)

    def delete_room(self, room_id: str) -> None:
        def _apply(state: AppState) -> AppState:
            if not state.session.authenticated:
                return replace(state, status=STATUS_NOT_LOGGED_IN)
            try:
                outgoing = machine.request_delete(room_id)
            except MembershipError as e:
                return replace(state, status=str(e))
            if not self._send(outgoing):
                return replace(state, status=STATUS_NOT_CONNECTED)
            return replace(state, pending_deletes=state.pending_deletes + (outgoing.payload['roomId'],))

        self.store.update(_apply)

    def create_room(self, name: str | None = None) -> None:
        def _apply(state: AppState) -> AppState:
            if not state.session.authenticated:
                return replace(state, status=STATUS_NOT_LOGGED_IN)
            room_name = str(state.new_room_name if name is None else name).strip()
            if not room_name:
                return replace(state, status=STATUS_ROOM_NAME_REQUIRED)
            transport = self._transport
            if transport is None or not transport.create(room_name):
                return replace(state, status=STATUS_NOT_CONNECTED)
            return state

        self.store.update(_apply)

    def send_message(self, text: str | None = None) -> None:
        def _apply(state: AppState) -> AppState:
            body = state.draft if text is None else text
            if not body:
                return replace(state, status=STATUS_EMPTY_MESSAGE)
            if not state.membership.joined:
                return replace(state, status=STATUS_JOIN_FIRST)
            transport = self._transport
            sent = transport is not None and transport.send_message(
                body,
                state.membership.current_room_name,
                state.session.username,
            )
            if not sent:
                return replace(state, status=STATUS_NOT_CONNECTED)
            # the log grows on the server echo, not here
            if text is None:
                return replace(state, draft='')
            return state

        self.store.update(_apply)

    def update_draft(self, text: str) -> None:
        self.store.update(lambda state: replace(state, draft=str(text or '')))

    def update_new_room_name(self, name: str) -> None:
        self.store.update(lambda state: replace(state, new_room_name=str(name or '')))

    # ------------------------------------------------------------------
    # Room list
    # ------------------------------------------------------------------

    def refresh_rooms(self) -> Future | None:
        session = self.state.session
        if not session.authenticated or not session.username:
            return None
        epoch = session.epoch
        future = self._executor.submit(self.api.get_rooms, session.access_token, session.username)
        future.add_done_callback(lambda done: self._on_rooms_fetched(epoch, done))
        return future

    def _on_rooms_fetched(self, epoch: int, future: Future) -> None:
        try:
            rooms: RoomList = future.result()
        except CancelledError:
            return
        except ApiError as e:
            if e.is_client_error:
                logger.warning(f"Room list rejected ({e.status_code}); signing out: {e}")
                self._forbid(epoch)
            else:
                logger.error(f"Room list server error ({e.status_code}): {e}")
                self._set_status_for_epoch(epoch, STATUS_SERVER_ERROR)
            return
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Room list request failed: {e}")
            self._set_status_for_epoch(epoch, STATUS_SERVER_ERROR)
            return

        def _apply(state: AppState) -> AppState:
            if state.session.epoch != epoch or not state.session.authenticated:
                logger.debug(f"Discarding stale room list (epoch {epoch})")
                return state
            return replace(state, rooms=rooms)

        self.store.update(_apply)

    def _set_status_for_epoch(self, epoch: int, status: str) -> None:
        def _apply(state: AppState) -> AppState:
            if state.session.epoch != epoch or not state.session.authenticated:
                return state
            return replace(state, status=status)

        self.store.update(_apply)

    def _forbid(self, epoch: int) -> None:
        forbidden = []

        def _apply(state: AppState) -> AppState:
            if state.session.epoch != epoch or not state.session.authenticated:
                return state
            forbidden.append(True)
            return replace(
                state,
                session=replace(state.session, phase=SessionPhase.LOGGED_OUT, epoch=state.session.epoch + 1),
                connected=False,
                status=STATUS_FORBIDDEN,
            )

        self.store.update(_apply)
        if forbidden:
            transport = self._swap_transport(None)
            if transport is not None:
                transport.disconnect()
