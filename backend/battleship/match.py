"""
Партия: два места, фазы waiting → setup → battle → finished, очередь хода и
победитель. Все изменения идут под замком партии, наружу возвращаются события.
"""
import logging
import random
import threading
from dataclasses import dataclass, field
from enum import Enum

from .board import Board, Orientation, Position, Ship
from .constants import FLEET_SIZES
from .errors import InvalidPlacement, MatchFull, NotYourTurn, UnknownPlayer, WrongPhase
from .events import (
    ATTACK_RESULT,
    BATTLE_START,
    GAME_OVER,
    GAME_RESET,
    GAME_START,
    PLAYER_DISCONNECTED,
    SHIP_PLACED,
    SHIPS_PLACED,
    Event,
    to_one,
)

logger = logging.getLogger(__name__)

MAX_PLAYERS = 2


class Phase(str, Enum):
    WAITING = "waiting"
    SETUP = "setup"
    BATTLE = "battle"
    FINISHED = "finished"


@dataclass
class PlayerSlot:
    connection_id: str
    name: str
    board: Board = field(default_factory=Board)
    ready: bool = False
    connected: bool = True

    def summary(self) -> dict:
        return {"id": self.connection_id, "name": self.name}


@dataclass(eq=False)
class Match:
    id: str
    room_code: str | None = None
    phase: Phase = Phase.WAITING
    slots: dict[str, PlayerSlot] = field(default_factory=dict)
    turn: str | None = None
    winner: str | None = None
    closed: bool = False  # снята из реестра, команды игнорируются
    rng: random.Random = field(default_factory=random.SystemRandom, repr=False)
    lock: threading.RLock = field(default_factory=threading.RLock, repr=False)

    @property
    def players(self) -> list[dict]:
        return [s.summary() for s in self.slots.values()]

    @property
    def open_for_quick_match(self) -> bool:
        return (
            not self.closed
            and self.phase is Phase.WAITING
            and len(self.slots) == 1
            and self.room_code is None
        )

    def opponent_of(self, connection_id: str) -> PlayerSlot | None:
        for cid, slot in self.slots.items():
            if cid != connection_id:
                return slot
        return None

    def _targets(self) -> tuple[str, ...]:
        return tuple(cid for cid, s in self.slots.items() if s.connected)

    def _slot(self, connection_id: str) -> PlayerSlot:
        slot = self.slots.get(connection_id)
        if slot is None:
            raise UnknownPlayer(connection_id)
        return slot

    def _require(self, *phases: Phase) -> None:
        if self.closed:
            raise WrongPhase("closed")
        if self.phase not in phases:
            raise WrongPhase(self.phase.value)

    def _require_opponent(self) -> None:
        # после ухода соперника партия заморожена
        if len(self._targets()) < MAX_PLAYERS:
            raise WrongPhase("opponent-disconnected")

    def add_player(self, connection_id: str, name: str) -> list[Event]:
        """Посадить игрока. Второй игрок переводит партию в setup."""
        with self.lock:
            if len(self.slots) >= MAX_PLAYERS:
                raise MatchFull(self.id)
            self._require(Phase.WAITING)
            if connection_id in self.slots:
                return []
            self.slots[connection_id] = PlayerSlot(connection_id=connection_id, name=name)
            if len(self.slots) < MAX_PLAYERS:
                return []
            self.phase = Phase.SETUP
            logger.info("match %s: setup, players=%s", self.id, list(self.slots))
            payload = {"matchId": self.id, "players": self.players, "phase": self.phase.value}
            if self.room_code:
                payload["roomCode"] = self.room_code
            return [Event(GAME_START, self._targets(), payload)]

    def place_ship(
        self,
        connection_id: str,
        ship_id: str,
        origin: Position,
        orientation: Orientation,
    ) -> list[Event]:
        """Поставить (или переставить) один корабль до готовности."""
        with self.lock:
            self._require(Phase.SETUP)
            slot = self._slot(connection_id)
            self._require_opponent()
            if slot.ready:
                raise WrongPhase("ready")
            size = FLEET_SIZES.get(ship_id)
            if size is None:
                raise InvalidPlacement("unknown-ship")
            cells = slot.board.validate_placement(ship_id, size, origin, orientation)
            slot.board.place_ship(Ship(id=ship_id, cells=cells))
            return [
                to_one(
                    connection_id,
                    SHIP_PLACED,
                    shipId=ship_id,
                    positions=[p.to_dict() for p in cells],
                )
            ]

    def mark_ready(self, connection_id: str) -> list[Event]:
        with self.lock:
            self._require(Phase.SETUP)
            slot = self._slot(connection_id)
            self._require_opponent()
            if slot.ready:
                return []
            if not slot.board.fleet_complete:
                raise InvalidPlacement("incomplete-fleet")
            slot.ready = True
            return [to_one(connection_id, SHIPS_PLACED)] + self._maybe_start_battle()

    def submit_fleet(self, connection_id: str, ships: list[Ship]) -> list[Event]:
        """Принять полный флот целиком: поле пересобирается, игрок готов."""
        with self.lock:
            self._require(Phase.SETUP)
            slot = self._slot(connection_id)
            self._require_opponent()
            board = Board.from_fleet(ships)
            slot.board = board
            slot.ready = True
            logger.info("match %s: fleet submitted by %s", self.id, connection_id)
            return [to_one(connection_id, SHIPS_PLACED)] + self._maybe_start_battle()

    def _maybe_start_battle(self) -> list[Event]:
        if len(self.slots) < MAX_PLAYERS or not all(s.ready for s in self.slots.values()):
            return []
        self.phase = Phase.BATTLE
        self.turn = self.rng.choice(list(self.slots))
        logger.info("match %s: battle, first turn %s", self.id, self.turn)
        return [
            Event(
                BATTLE_START,
                self._targets(),
                {"currentTurn": self.turn, "players": self.players},
            )
        ]

    def submit_attack(self, connection_id: str, target: Position) -> list[Event]:
        """
        Выстрел по полю соперника. Чужой ход или не та фаза отклоняются
        без изменений и без событий.
        """
        with self.lock:
            self._require(Phase.BATTLE)
            if connection_id != self.turn:
                raise NotYourTurn(connection_id)
            self._require_opponent()
            attacker = self._slot(connection_id)
            opponent = self.opponent_of(connection_id)
            result = opponent.board.resolve_attack(target)
            if opponent.board.all_sunk():
                self.phase = Phase.FINISHED
                self.winner = connection_id
                self.turn = None
                logger.info("match %s: finished, winner %s", self.id, connection_id)
                return [
                    Event(
                        GAME_OVER,
                        self._targets(),
                        {
                            "winner": connection_id,
                            "winnerName": attacker.name,
                            "row": target.row,
                            "col": target.col,
                            "attackerId": connection_id,
                        },
                    )
                ]
            self.turn = opponent.connection_id
            return [
                Event(
                    ATTACK_RESULT,
                    self._targets(),
                    {
                        "row": target.row,
                        "col": target.col,
                        "isHit": result.is_hit,
                        "currentTurn": self.turn,
                        "attackerId": connection_id,
                        "sunkShip": result.sunk_ship,
                    },
                )
            ]

    def disconnect_player(self, connection_id: str) -> tuple[list[Event], bool]:
        """
        Уход игрока. Возвращает (события, партия снята).
        До старта партия снимается целиком; после старта замораживается,
        оставшийся игрок получает player-disconnected. Когда не осталось ни
        одного подключённого игрока, партия снимается.
        """
        with self.lock:
            slot = self.slots.get(connection_id)
            if self.closed or slot is None or not slot.connected:
                return [], self.closed
            if self.phase is Phase.WAITING or len(self.slots) == 1:
                self.closed = True
                return [], True
            slot.connected = False
            remaining = self._targets()
            if not remaining:
                self.closed = True
                return [], True
            return [Event(PLAYER_DISCONNECTED, remaining, {"playerId": connection_id})], False

    def reset(self, connection_id: str) -> list[Event]:
        """Реванш: из finished обратно в setup с пустыми полями."""
        with self.lock:
            self._require(Phase.FINISHED)
            self._slot(connection_id)
            self._require_opponent()
            for slot in self.slots.values():
                slot.board = Board()
                slot.ready = False
            self.phase = Phase.SETUP
            self.turn = None
            self.winner = None
            logger.info("match %s: reset by %s", self.id, connection_id)
            return [
                Event(
                    GAME_RESET,
                    self._targets(),
                    {"matchId": self.id, "players": self.players, "phase": self.phase.value},
                )
            ]
