# -*- coding: utf-8 -*-
"""
Client-side state records.

Every record is immutable; state changes go through ``dataclasses.replace`` inside
``StateStore.update`` so that readers always see a whole snapshot.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any


class Direction(enum.Enum):
    SENT = 'sent'
    RECEIVED = 'received'


class SessionPhase(enum.Enum):
    LOGGED_OUT = 'logged_out'
    LOGGING_IN = 'logging_in'  # token known, username not yet
    LOGGED_IN = 'logged_in'


class Pending(enum.Enum):
    NONE = 'none'
    JOINING = 'joining'
    SWITCHING = 'switching'
    LEAVING = 'leaving'


@dataclass(frozen=True)
class Credentials:
    token: str = ''
    username: str = ''


@dataclass(frozen=True)
class Session:
    phase: SessionPhase = SessionPhase.LOGGED_OUT
    access_token: str = ''
    username: str = ''
    epoch: int = 0

    @property
    def authenticated(self) -> bool:
        return self.phase is not SessionPhase.LOGGED_OUT


@dataclass(frozen=True)
class Room:
    id: str
    name: str

    @staticmethod
    def from_dict(data: dict[str, Any]) -> 'Room | None':
        if not isinstance(data, dict):
            return None
        room_id = str(data.get('id') or '').strip()
        if not room_id:
            return None
        return Room(id=room_id, name=str(data.get('name') or ''))


@dataclass(frozen=True)
class RoomList:
    own: tuple[Room, ...] = ()
    others: tuple[Room, ...] = ()

    @staticmethod
    def from_dict(data: dict[str, Any]) -> 'RoomList':
        if not isinstance(data, dict):
            return RoomList()

        def _rooms(key: str) -> tuple[Room, ...]:
            rows = data.get(key)
            if not isinstance(rows, list):
                return ()
            parsed = (Room.from_dict(row) for row in rows)
            return tuple(room for room in parsed if room is not None)

        return RoomList(own=_rooms('own'), others=_rooms('others'))

    def find(self, room_id: str) -> Room | None:
        for room in self.own + self.others:
            if room.id == room_id:
                return room
        return None


@dataclass(frozen=True)
class Message:
    text: str
    sender: str
    direction: Direction


@dataclass(frozen=True)
class RoomMembership:
    current_room_id: str = ''
    current_room_name: str = ''
    joined: bool = False
    pending: Pending = Pending.NONE
    pending_room_id: str = ''

    @property
    def is_idle(self) -> bool:
        return not self.joined


@dataclass(frozen=True)
class MessageLog:
    room_id: str = ''
    messages: tuple[Message, ...] = ()

    def __len__(self) -> int:
        return len(self.messages)


@dataclass(frozen=True)
class AuthResponse:
    error: bool
    message: str
    username: str = ''
    access_token: str = ''

    @staticmethod
    def from_dict(data: dict[str, Any]) -> 'AuthResponse':
        if not isinstance(data, dict):
            data = {}
        return AuthResponse(
            error=bool(data.get('error', False)),
            message=str(data.get('message') or ''),
            username=str(data.get('username') or ''),
            access_token=str(data.get('access_token') or ''),
        )


@dataclass(frozen=True)
class AppState:
    session: Session = field(default_factory=Session)
    membership: RoomMembership = field(default_factory=RoomMembership)
    rooms: RoomList = field(default_factory=RoomList)
    log: MessageLog = field(default_factory=MessageLog)
    status: str = ''
    connected: bool = False
    draft: str = ''
    new_room_name: str = ''
    # delete_response carries no room id; acknowledgements match in send order
    pending_deletes: tuple[str, ...] = ()
