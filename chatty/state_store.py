# -*- coding: utf-8 -*-
"""
Single-writer container for the client's ``AppState``.
"""

from __future__ import annotations

import logging
import threading
from typing import Callable

from chatty.models import AppState

logger = logging.getLogger(__name__)

StateListener = Callable[[AppState], None]
StateUpdater = Callable[[AppState], AppState]


class StateStore:
    """Mutex-guarded read-modify-write over immutable snapshots.

    Socket callbacks, credential changes and user intents may arrive on different
    threads; all of them funnel through ``update`` so each change applies to the
    latest snapshot. Listeners are called under the same lock, so they observe
    snapshots in commit order. A listener may call ``update`` again (the lock is
    re-entrant) but should not block.
    """

    def __init__(self, initial: AppState | None = None):
        self._state = initial or AppState()
        self._lock = threading.RLock()
        self._listeners: list[StateListener] = []

    @property
    def lock(self) -> threading.RLock:
        return self._lock

    @property
    def state(self) -> AppState:
        with self._lock:
            return self._state

    def update(self, updater: StateUpdater) -> AppState:
        with self._lock:
            new_state = updater(self._state)
            if new_state is None or new_state is self._state:
                return self._state
            self._state = new_state
            self._notify(new_state)
            return new_state

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        with self._lock:
            self._listeners.append(listener)

        def _unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return _unsubscribe

    def _notify(self, state: AppState) -> None:
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception as e:
                logger.error(f"State listener error: {e}")
