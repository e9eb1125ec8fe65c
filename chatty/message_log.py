# -*- coding: utf-8 -*-
"""
Per-room message log.
"""

from __future__ import annotations

from typing import Any

from chatty.models import Direction, Message, MessageLog


def classify_direction(sender: str, local_username: str) -> Direction:
    # exact, case-sensitive comparison
    if sender == local_username:
        return Direction.SENT
    return Direction.RECEIVED


def message_from_payload(payload: dict[str, Any], local_username: str) -> Message | None:
    if not isinstance(payload, dict):
        return None
    if 'message' not in payload or 'sender' not in payload:
        return None
    sender = str(payload.get('sender') or '')
    return Message(
        text=str(payload.get('message') or ''),
        sender=sender,
        direction=classify_direction(sender, local_username),
    )


def append(log: MessageLog, message: Message) -> MessageLog:
    return MessageLog(room_id=log.room_id, messages=log.messages + (message,))


def reset(room_id: str = '') -> MessageLog:
    return MessageLog(room_id=room_id)
