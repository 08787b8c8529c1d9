import logging
import threading
import time
from typing import Dict, Optional

from .errors import RoomNotFound
from .room import Room
from .scoring import ScoringPolicy
from .store import GameStore

logger = logging.getLogger(__name__)


class RoomDirectory:
    """Registry of live rooms keyed by upper-cased game code.

    One directory is created per application in ``create_app`` and closed
    on teardown. Rooms missing from the registry are hydrated from the store
    on first contact; codes the store has never seen are rejected.

    Lookups of live rooms take no lock. Hydration is serialized per code, and
    the store read happens outside the map lock, so a slow hydration only
    delays callers of that same code.
    """

    def __init__(self, store: GameStore, scoring: Optional[ScoringPolicy] = None, idle_ttl_sec: int = 0):
        self._store = store
        self._scoring = scoring or ScoringPolicy()
        self._idle_ttl_sec = idle_ttl_sec
        self._rooms: Dict[str, Room] = {}
        self._hydrating: Dict[str, threading.Lock] = {}
        self._lock = threading.Lock()  # guards _rooms and _hydrating writes only

    def __len__(self):
        return len(self._rooms)

    def __contains__(self, game_code):
        return isinstance(game_code, str) and game_code.upper() in self._rooms

    def get(self, game_code) -> Optional[Room]:
        if not isinstance(game_code, str) or not game_code:
            return None
        return self._rooms.get(game_code.upper())

    def get_or_create(self, game_code: str, creator_name: Optional[str] = None) -> Room:
        if not isinstance(game_code, str) or not game_code.strip():
            raise RoomNotFound()
        code = game_code.strip().upper()

        room = self._rooms.get(code)
        if room is not None:
            room.touch()
            return room

        self.prune()
        with self._lock:
            code_lock = self._hydrating.setdefault(code, threading.Lock())
        with code_lock:
            room = self._rooms.get(code)
            if room is not None:
                return room
            try:
                snapshot = self._store.load_game(code)
                if snapshot is None:
                    logger.warning(f"[room-missing] code={code} requested_by={creator_name}")
                    raise RoomNotFound()
                room = Room.hydrate(snapshot, self._store, scoring=self._scoring)
                with self._lock:
                    room = self._rooms.setdefault(code, room)
                return room
            finally:
                with self._lock:
                    if self._hydrating.get(code) is code_lock:
                        del self._hydrating[code]

    def discard(self, game_code) -> Optional[Room]:
        with self._lock:
            return self._rooms.pop(game_code.upper(), None)

    def prune(self, now: Optional[float] = None) -> int:
        """Drop finished or idle rooms when an idle TTL is configured.

        A room busy with a mutation is skipped; staleness is judged while
        holding the room's lock so a room is never dropped mid-move.
        """
        if not self._idle_ttl_sec:
            return 0
        now = time.time() if now is None else now
        with self._lock:
            candidates = list(self._rooms.items())
        dropped = []
        for code, room in candidates:
            with room.try_lock() as held:
                if not held or not room.is_stale(now, self._idle_ttl_sec):
                    continue
                with self._lock:
                    if self._rooms.get(code) is room:
                        del self._rooms[code]
                        dropped.append(code)
        if dropped:
            logger.info(f"[prune] rooms={len(dropped)} codes={','.join(dropped)}")
        return len(dropped)

    def close(self) -> None:
        with self._lock:
            self._rooms.clear()
            self._hydrating.clear()
