from __future__ import annotations

import threading
from collections import OrderedDict
from typing import Protocol, Tuple

AttemptKey = Tuple[str, str]  # (viewer_session_id, project_id)


class AttemptStore(Protocol):
    def failures(self, key: AttemptKey) -> int: ...

    def record_failure(self, key: AttemptKey) -> int: ...

    def reset(self, key: AttemptKey) -> None: ...


class InMemoryAttemptStore:
    """
    Failed-PIN counter keyed by (viewer session, project).

    A counter only goes away on success (`reset`) or when its session is
    forgotten. Time never lifts a lockout; a fresh session id starts from
    zero. At most `max_sessions` keys are kept, least recently touched
    dropped first.
    """

    def __init__(self, max_sessions: int = 50_000):
        self.max_sessions = max_sessions
        self._counters: "OrderedDict[AttemptKey, int]" = OrderedDict()
        self._lock = threading.Lock()

    def failures(self, key: AttemptKey) -> int:
        with self._lock:
            return self._counters.get(key, 0)

    def record_failure(self, key: AttemptKey) -> int:
        with self._lock:
            count = self._counters.pop(key, 0) + 1
            self._counters[key] = count
            while len(self._counters) > self.max_sessions:
                self._counters.popitem(last=False)
            return count

    def reset(self, key: AttemptKey) -> None:
        with self._lock:
            self._counters.pop(key, None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._counters)
