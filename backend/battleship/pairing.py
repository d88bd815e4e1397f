"""
Реестр партий и подбор соперника (in-memory).
Быстрая игра, приватные комнаты по коду, привязка соединений к партиям.
"""
import logging
import random
import threading
import uuid
from collections import Counter

from .board import Orientation, Position, Ship
from .constants import ROOM_CODE_ALPHABET, ROOM_CODE_LENGTH
from .errors import MatchFull, RoomFull, RoomNotFound
from .events import ROOM_CREATED, WAITING_FOR_OPPONENT, Event, to_one
from .match import MAX_PLAYERS, Match, Phase

logger = logging.getLogger(__name__)


class Registry:
    """
    Две карты (match_id → Match, connection_id → match_id) под одним замком.
    Порядок захвата: сначала замок реестра, потом замок партии.
    """

    def __init__(self, rng: random.Random | None = None, room_code_attempts: int = 20):
        self._rng = rng or random.SystemRandom()
        self._room_code_attempts = max(1, room_code_attempts)
        self._matches: dict[str, Match] = {}
        self._by_connection: dict[str, str] = {}
        self._lock = threading.RLock()

    def get_match(self, match_id: str) -> Match | None:
        with self._lock:
            return self._matches.get(match_id)

    def match_for(self, connection_id: str) -> Match | None:
        """Партия соединения или None."""
        with self._lock:
            match_id = self._by_connection.get(connection_id)
            return self._matches.get(match_id) if match_id else None

    def counts(self) -> dict[str, int]:
        """Количество партий по фазам."""
        with self._lock:
            by_phase = Counter(m.phase.value for m in self._matches.values())
        return {phase.value: by_phase.get(phase.value, 0) for phase in Phase}

    def _new_match(self, room_code: str | None = None) -> Match:
        match = Match(id=str(uuid.uuid4()), room_code=room_code, rng=self._rng)
        self._matches[match.id] = match
        return match

    def _generate_room_code(self) -> str:
        # Повтор при совпадении с живой комнатой; после исчерпания попыток
        # берётся последний вариант.
        live = {m.room_code for m in self._matches.values() if m.room_code}
        code = ""
        for _ in range(self._room_code_attempts):
            code = "".join(self._rng.choice(ROOM_CODE_ALPHABET) for _ in range(ROOM_CODE_LENGTH))
            if code not in live:
                return code
        logger.warning("room code collision persisted after %d attempts", self._room_code_attempts)
        return code

    def _bind(self, connection_id: str, match: Match) -> None:
        self._by_connection[connection_id] = match.id

    def _leave_current(self, connection_id: str) -> list[Event]:
        """Уйти из текущей партии перед новым входом."""
        if connection_id not in self._by_connection:
            return []
        logger.info("%s leaves its previous match before joining another", connection_id)
        return self._disconnect_locked(connection_id)

    def quick_match(self, connection_id: str, name: str) -> tuple[Match, list[Event]]:
        """Сесть в любую ждущую партию без кода комнаты или создать новую."""
        with self._lock:
            events = self._leave_current(connection_id)
            match = next((m for m in self._matches.values() if m.open_for_quick_match), None)
            if match is None:
                match = self._new_match()
                logger.info("quick match: new match %s for %s", match.id, connection_id)
            events += match.add_player(connection_id, name)
            self._bind(connection_id, match)
            if match.phase is Phase.WAITING:
                events.append(to_one(connection_id, WAITING_FOR_OPPONENT))
            return match, events

    def create_room(self, connection_id: str, name: str) -> tuple[Match, list[Event]]:
        with self._lock:
            events = self._leave_current(connection_id)
            match = self._new_match(room_code=self._generate_room_code())
            events += match.add_player(connection_id, name)
            self._bind(connection_id, match)
            logger.info("room %s created by %s (match %s)", match.room_code, connection_id, match.id)
            events.append(
                to_one(connection_id, ROOM_CREATED, roomCode=match.room_code, matchId=match.id)
            )
            return match, events

    def join_room(self, connection_id: str, name: str, room_code: str) -> tuple[Match, list[Event]]:
        code = (room_code or "").strip().upper()
        with self._lock:
            match = next(
                (m for m in self._matches.values() if m.room_code == code and not m.closed),
                None,
            )
            if match is None:
                raise RoomNotFound(code)
            if len(match.slots) >= MAX_PLAYERS:
                raise RoomFull(code)
            if self._by_connection.get(connection_id) == match.id:
                return match, []
            events = self._leave_current(connection_id)
            # уход мог снять эту же комнату
            if match.closed:
                raise RoomNotFound(code)
            try:
                events += match.add_player(connection_id, name)
            except MatchFull:
                raise RoomFull(code) from None
            self._bind(connection_id, match)
            return match, events

    def place_ships(self, connection_id: str, ships: list[Ship]) -> list[Event]:
        match = self.match_for(connection_id)
        if match is None:
            return []
        with match.lock:
            if match.closed:
                return []
            return match.submit_fleet(connection_id, ships)

    def place_ship(
        self,
        connection_id: str,
        ship_id: str,
        origin: Position,
        orientation: Orientation,
    ) -> list[Event]:
        match = self.match_for(connection_id)
        if match is None:
            return []
        with match.lock:
            if match.closed:
                return []
            return match.place_ship(connection_id, ship_id, origin, orientation)

    def ready(self, connection_id: str) -> list[Event]:
        match = self.match_for(connection_id)
        if match is None:
            return []
        with match.lock:
            if match.closed:
                return []
            return match.mark_ready(connection_id)

    def attack(self, connection_id: str, target: Position) -> list[Event]:
        match = self.match_for(connection_id)
        if match is None:
            return []
        with match.lock:
            if match.closed:
                return []
            return match.submit_attack(connection_id, target)

    def reset(self, connection_id: str) -> list[Event]:
        match = self.match_for(connection_id)
        if match is None:
            return []
        with match.lock:
            if match.closed:
                return []
            return match.reset(connection_id)

    def disconnect(self, connection_id: str) -> list[Event]:
        """Соединение закрыто: уведомить соперника, снять привязку и, если нужно, партию."""
        with self._lock:
            return self._disconnect_locked(connection_id)

    def _disconnect_locked(self, connection_id: str) -> list[Event]:
        match_id = self._by_connection.pop(connection_id, None)
        match = self._matches.get(match_id) if match_id else None
        if match is None:
            return []
        events, torn_down = match.disconnect_player(connection_id)
        if torn_down:
            self._matches.pop(match.id, None)
            for cid in [c for c, mid in self._by_connection.items() if mid == match.id]:
                self._by_connection.pop(cid, None)
            logger.info("match %s torn down after %s left", match.id, connection_id)
        return events
