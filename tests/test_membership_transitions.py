# -*- coding: utf-8 -*-

from __future__ import annotations

import pytest

from chatty import membership as machine
from chatty.membership import MembershipError
from chatty.models import Pending, RoomMembership


def _joined(room_id: str = 'abc123', room_name: str = 'R1') -> RoomMembership:
    return machine.apply_join_response(machine.IDLE, room_id, room_name).membership


def test_join_from_idle_sends_join_without_joining():
    membership, outgoing = machine.request_join(machine.IDLE, 'abc123')

    assert outgoing.event == 'join'
    assert outgoing.payload == {'roomId': 'abc123'}
    assert membership.joined is False
    assert membership.pending is Pending.JOINING
    assert membership.pending_room_id == 'abc123'


def test_join_response_from_idle_resets_log():
    pending, _ = machine.request_join(machine.IDLE, 'abc123')

    transition = machine.apply_join_response(pending, 'abc123', 'R1')

    assert transition.reset_log is True
    assert transition.membership == RoomMembership(current_room_id='abc123', current_room_name='R1', joined=True)


def test_join_other_room_while_joined_is_switch():
    membership, outgoing = machine.request_join(_joined(), 'def456')

    assert outgoing.event == 'switch'
    assert outgoing.payload == {'joinRoom': 'def456', 'leaveRoom': 'abc123'}
    assert membership.pending is Pending.SWITCHING
    assert membership.current_room_id == 'abc123'

    transition = machine.apply_join_response(membership, 'def456', 'R2')
    assert transition.reset_log is True
    assert transition.membership.current_room_id == 'def456'
    assert transition.membership.pending is Pending.NONE


def test_same_room_join_response_keeps_log():
    transition = machine.apply_join_response(_joined(), 'abc123', 'R1')

    assert transition.reset_log is False


@pytest.mark.parametrize('room_id', ['', '   '])
def test_join_requires_room_id(room_id):
    with pytest.raises(MembershipError):
        machine.request_join(machine.IDLE, room_id)


def test_join_current_room_is_rejected():
    with pytest.raises(MembershipError):
        machine.request_join(_joined(), 'abc123')


def test_no_second_request_while_pending():
    pending, _ = machine.request_join(machine.IDLE, 'abc123')

    with pytest.raises(MembershipError):
        machine.request_join(pending, 'def456')

    leaving, _ = machine.request_leave(_joined())
    with pytest.raises(MembershipError):
        machine.request_leave(leaving)


def test_delete_does_not_depend_on_membership():
    outgoing = machine.request_delete('abc123')

    assert outgoing.event == 'delete'
    assert outgoing.payload == {'roomId': 'abc123'}


def test_leave_requires_room():
    with pytest.raises(MembershipError):
        machine.request_leave(machine.IDLE)


def test_leave_response_goes_idle():
    leaving, outgoing = machine.request_leave(_joined())
    assert outgoing.payload == {'roomId': 'abc123'}

    transition = machine.apply_leave_response(leaving)

    assert transition.membership == machine.IDLE
    assert transition.reset_log is True


def test_delete_response_error_keeps_membership():
    joined = _joined()

    transition = machine.apply_delete_response(joined, 'abc123', error=True)

    assert transition.membership is joined
    assert transition.reset_log is False


def test_delete_response_for_current_room_goes_idle():
    transition = machine.apply_delete_response(_joined(), 'abc123', error=False)

    assert transition.membership == machine.IDLE
    assert transition.reset_log is True


def test_delete_response_for_other_room_keeps_membership():
    joined = _joined()

    transition = machine.apply_delete_response(joined, 'def456', error=False)

    assert transition.membership is joined
    assert transition.reset_log is False


@pytest.mark.parametrize(
    'membership',
    [
        machine.IDLE,
        _joined(),
        machine.request_join(machine.IDLE, 'abc123')[0],
        machine.request_join(_joined(), 'def456')[0],
        machine.request_leave(_joined())[0],
    ],
)
def test_logout_always_idle(membership):
    idle, outgoing = machine.logout(membership)

    assert idle == machine.IDLE
    if membership.joined:
        assert outgoing.event == 'temp_leave'
        assert outgoing.payload == {'roomId': membership.current_room_id}
    else:
        assert outgoing is None


def test_rejoin_requires_room():
    with pytest.raises(MembershipError):
        machine.request_rejoin(machine.IDLE)

    membership, outgoing = machine.request_rejoin(_joined())
    assert outgoing.event == 'join'
    assert membership.pending is Pending.JOINING


def test_clear_pending():
    pending, _ = machine.request_join(_joined(), 'def456')

    cleared = machine.clear_pending(pending)

    assert cleared.pending is Pending.NONE
    assert cleared.current_room_id == 'abc123'
