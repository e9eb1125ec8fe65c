# -*- coding: utf-8 -*-
"""
Room membership state machine.

Pure functions over ``RoomMembership``. Request functions return the new
membership plus the wire event to send; acknowledgement functions return the new
membership plus whether the message log must be reset. Nothing here talks to the
network, and no membership change happens before the server acknowledges it.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any

from chatty.models import Pending, RoomMembership


class MembershipError(RuntimeError):
    pass


@dataclass(frozen=True)
class Outgoing:
    event: str
    payload: dict[str, Any]


@dataclass(frozen=True)
class Transition:
    membership: RoomMembership
    reset_log: bool = False


IDLE = RoomMembership()


def _ensure_not_pending(membership: RoomMembership) -> None:
    if membership.pending is not Pending.NONE:
        raise MembershipError(f'Another room action is in progress ({membership.pending.value}).')


def request_join(membership: RoomMembership, room_id: str) -> tuple[RoomMembership, Outgoing]:
    room_id = str(room_id or '').strip()
    if not room_id:
        raise MembershipError('Room id is required.')
    _ensure_not_pending(membership)

    if not membership.joined:
        outgoing = Outgoing('join', {'roomId': room_id})
        pending = Pending.JOINING
    elif room_id == membership.current_room_id:
        raise MembershipError('Already joined this room.')
    else:
        outgoing = Outgoing('switch', {'joinRoom': room_id, 'leaveRoom': membership.current_room_id})
        pending = Pending.SWITCHING
    return replace(membership, pending=pending, pending_room_id=room_id), outgoing


def request_rejoin(membership: RoomMembership) -> tuple[RoomMembership, Outgoing]:
    """Re-announce the current room after a ``temp_leave`` (app back in foreground)."""
    if not membership.joined:
        raise MembershipError('Not in a room.')
    _ensure_not_pending(membership)
    room_id = membership.current_room_id
    return (
        replace(membership, pending=Pending.JOINING, pending_room_id=room_id),
        Outgoing('join', {'roomId': room_id}),
    )


def request_leave(membership: RoomMembership) -> tuple[RoomMembership, Outgoing]:
    if not membership.joined:
        raise MembershipError('Not in a room.')
    _ensure_not_pending(membership)
    return (
        replace(membership, pending=Pending.LEAVING, pending_room_id=membership.current_room_id),
        Outgoing('leave', {'roomId': membership.current_room_id}),
    )


def request_delete(room_id: str) -> Outgoing:
    # independent of membership; allowed while a join/switch/leave is pending
    room_id = str(room_id or '').strip()
    if not room_id:
        raise MembershipError('Room id is required.')
    return Outgoing('delete', {'roomId': room_id})


def temp_leave(membership: RoomMembership) -> Outgoing | None:
    if not membership.joined or not membership.current_room_id:
        return None
    return Outgoing('temp_leave', {'roomId': membership.current_room_id})


def apply_join_response(membership: RoomMembership, room_id: str, room_name: str) -> Transition:
    room_id = str(room_id or '').strip()
    if not room_id:
        raise MembershipError('join_response without roomId')
    changed = not membership.joined or membership.current_room_id != room_id
    joined = replace(
        membership,
        current_room_id=room_id,
        current_room_name=str(room_name or ''),
        joined=True,
        pending=Pending.NONE,
        pending_room_id='',
    )
    return Transition(joined, reset_log=changed)


def apply_leave_response(membership: RoomMembership) -> Transition:
    return Transition(IDLE, reset_log=True)


def apply_delete_response(membership: RoomMembership, deleted_room_id: str, error: bool) -> Transition:
    if error:
        return Transition(membership)
    if membership.joined and deleted_room_id and deleted_room_id == membership.current_room_id:
        return Transition(IDLE, reset_log=True)
    return Transition(membership)


def clear_pending(membership: RoomMembership) -> RoomMembership:
    if membership.pending is Pending.NONE:
        return membership
    return replace(membership, pending=Pending.NONE, pending_room_id='')


def logout(membership: RoomMembership) -> tuple[RoomMembership, Outgoing | None]:
    return IDLE, temp_leave(membership)
