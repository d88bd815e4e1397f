"""
Модель поля 10×10: клетки, корабли, расстановка и разрешение выстрелов.
Ничего не знает о партиях и соединениях.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable

from .constants import BOARD_SIZE, FLEET_IDS, FLEET_SIZES
from .errors import CellAlreadyTargeted, InvalidPlacement, InvalidTarget


class CellState(str, Enum):
    EMPTY = "empty"
    SHIP = "ship"
    HIT = "hit"
    MISS = "miss"


class Orientation(str, Enum):
    HORIZONTAL = "horizontal"
    VERTICAL = "vertical"


class AttackOutcome(str, Enum):
    HIT = "hit"
    MISS = "miss"


@dataclass(frozen=True)
class Position:
    row: int
    col: int

    def in_bounds(self) -> bool:
        return 0 <= self.row < BOARD_SIZE and 0 <= self.col < BOARD_SIZE

    def to_dict(self) -> dict:
        return {"row": self.row, "col": self.col}


def cells_for(origin: Position, size: int, orientation: Orientation) -> tuple[Position, ...]:
    """Клетки корабля от origin: horizontal растёт по col, vertical по row."""
    if orientation is Orientation.HORIZONTAL:
        return tuple(Position(origin.row, origin.col + i) for i in range(size))
    if orientation is Orientation.VERTICAL:
        return tuple(Position(origin.row + i, origin.col) for i in range(size))
    raise ValueError(f"unknown orientation {orientation!r}")


@dataclass
class Ship:
    id: str
    cells: tuple[Position, ...]
    hits: list[bool] = field(default_factory=list)

    def __post_init__(self) -> None:
        if len(self.hits) != len(self.cells):
            self.hits = [False] * len(self.cells)

    @property
    def size(self) -> int:
        return len(self.cells)

    @property
    def sunk(self) -> bool:
        return all(self.hits)

    def index_of(self, pos: Position) -> int | None:
        for i, cell in enumerate(self.cells):
            if cell == pos:
                return i
        return None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "size": self.size,
            "positions": [p.to_dict() for p in self.cells],
            "hits": list(self.hits),
        }


@dataclass(frozen=True)
class AttackResult:
    outcome: AttackOutcome
    ship: Ship | None = None

    @property
    def is_hit(self) -> bool:
        return self.outcome is AttackOutcome.HIT

    @property
    def sunk_ship(self) -> str | None:
        if self.ship is not None and self.ship.sunk:
            return self.ship.id
        return None


def ship_from_positions(ship_id: str, positions: Iterable[Position]) -> Ship:
    """
    Собрать корабль из явного списка клеток (формат place-ships).
    Клетки должны идти подряд по одной линии и совпадать по числу с размером
    корабля из канонического флота. Попадания клиента не принимаются.
    """
    size = FLEET_SIZES.get(ship_id)
    if size is None:
        raise InvalidPlacement("unknown-ship")
    positions = list(positions)
    if len(set(positions)) != len(positions):
        raise InvalidPlacement("duplicate-cell")
    cells = sorted(positions, key=lambda p: (p.row, p.col))
    if len(cells) != size:
        raise InvalidPlacement("wrong-size")
    origin = cells[0]
    for orientation in Orientation:
        expected = cells_for(origin, size, orientation)
        if list(expected) == cells:
            return Ship(id=ship_id, cells=expected)
    raise InvalidPlacement("not-contiguous")


def all_sunk(ships: Iterable[Ship]) -> bool:
    """Все корабли потоплены. Пустой набор флотом не считается."""
    ships = list(ships)
    return bool(ships) and all(s.sunk for s in ships)


class Board:
    def __init__(self) -> None:
        self._cells = [[CellState.EMPTY] * BOARD_SIZE for _ in range(BOARD_SIZE)]
        self._owners: list[list[str | None]] = [[None] * BOARD_SIZE for _ in range(BOARD_SIZE)]
        self.ships: dict[str, Ship] = {}

    @classmethod
    def from_fleet(cls, ships: Iterable[Ship]) -> "Board":
        """Полная расстановка: ровно пять канонических кораблей, без пересечений."""
        ships = list(ships)
        ids = [s.id for s in ships]
        if len(ids) != len(set(ids)):
            raise InvalidPlacement("duplicate-ship")
        if sorted(ids) != sorted(FLEET_IDS):
            raise InvalidPlacement("incomplete-fleet")
        board = cls()
        for ship in ships:
            if ship.size != FLEET_SIZES[ship.id]:
                raise InvalidPlacement("wrong-size")
            board.place_ship(ship)
        return board

    def cell(self, pos: Position) -> CellState:
        return self._cells[pos.row][pos.col]

    def ship_at(self, pos: Position) -> Ship | None:
        owner = self._owners[pos.row][pos.col]
        return self.ships.get(owner) if owner else None

    def _check_cells(self, ship_id: str, cells: Iterable[Position]) -> None:
        for p in cells:
            if not p.in_bounds():
                raise InvalidPlacement("out-of-bounds")
            owner = self._owners[p.row][p.col]
            if owner is not None and owner != ship_id:
                raise InvalidPlacement("overlap")

    def validate_placement(
        self,
        ship_id: str,
        size: int,
        origin: Position,
        orientation: Orientation,
    ) -> tuple[Position, ...]:
        """Проверить расстановку и вернуть клетки. Свои же клетки пересечением не считаются."""
        cells = cells_for(origin, size, orientation)
        self._check_cells(ship_id, cells)
        return cells

    def place_ship(self, ship: Ship) -> None:
        # повторная расстановка того же id сначала освобождает старые клетки
        self._check_cells(ship.id, ship.cells)
        self.remove_ship(ship.id)
        for p in ship.cells:
            self._cells[p.row][p.col] = CellState.SHIP
            self._owners[p.row][p.col] = ship.id
        self.ships[ship.id] = ship

    def remove_ship(self, ship_id: str) -> None:
        ship = self.ships.pop(ship_id, None)
        if ship is None:
            return
        for p in ship.cells:
            self._cells[p.row][p.col] = CellState.EMPTY
            self._owners[p.row][p.col] = None

    @property
    def fleet_complete(self) -> bool:
        return sorted(self.ships) == sorted(FLEET_IDS)

    def resolve_attack(self, target: Position) -> AttackResult:
        if not target.in_bounds():
            raise InvalidTarget(f"{target.row},{target.col}")
        state = self.cell(target)
        if state is CellState.HIT or state is CellState.MISS:
            raise CellAlreadyTargeted(f"{target.row},{target.col}")
        if state is CellState.SHIP:
            ship = self.ship_at(target)
            ship.hits[ship.index_of(target)] = True
            self._cells[target.row][target.col] = CellState.HIT
            return AttackResult(AttackOutcome.HIT, ship)
        if state is CellState.EMPTY:
            self._cells[target.row][target.col] = CellState.MISS
            return AttackResult(AttackOutcome.MISS)
        raise ValueError(f"unknown cell state {state!r}")

    def all_sunk(self) -> bool:
        return all_sunk(self.ships.values())

    def cells_with(self, state: CellState) -> set[Position]:
        return {
            Position(r, c)
            for r in range(BOARD_SIZE)
            for c in range(BOARD_SIZE)
            if self._cells[r][c] is state
        }

    def snapshot(self) -> list[list[str]]:
        return [[c.value for c in row] for row in self._cells]
