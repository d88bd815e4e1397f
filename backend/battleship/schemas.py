"""Входящие команды WebSocket. Поле type выбирает модель."""
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

from .board import Orientation, Position, Ship, ship_from_positions
from .constants import BOARD_SIZE
from .errors import InvalidPlacement


class _Command(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class Cell(BaseModel):
    row: int
    col: int

    def to_position(self) -> Position:
        return Position(self.row, self.col)


class ShipIn(BaseModel):
    id: str
    size: int | None = None
    positions: list[Cell]
    hits: list[bool] = Field(default_factory=list)  # клиентские попадания игнорируются

    def to_ship(self) -> Ship:
        if self.size is not None and self.size != len(self.positions):
            raise InvalidPlacement("wrong-size")
        return ship_from_positions(self.id, (c.to_position() for c in self.positions))


class JoinQuickMatch(_Command):
    type: Literal["join-quick-match"]
    player_name: str = Field("", alias="playerName")


class CreateRoom(_Command):
    type: Literal["create-room"]
    player_name: str = Field("", alias="playerName")


class JoinRoom(_Command):
    type: Literal["join-room"]
    player_name: str = Field("", alias="playerName")
    room_code: str = Field(alias="roomCode")


class PlaceShips(_Command):
    type: Literal["place-ships"]
    ships: list[ShipIn]


class PlaceShip(_Command):
    type: Literal["place-ship"]
    ship_id: str = Field(alias="shipId")
    row: int
    col: int
    orientation: Orientation = Orientation.HORIZONTAL


class Ready(_Command):
    type: Literal["ready"]


class Attack(_Command):
    type: Literal["attack"]
    row: int = Field(ge=0, lt=BOARD_SIZE)
    col: int = Field(ge=0, lt=BOARD_SIZE)


class ResetGame(_Command):
    type: Literal["reset-game"]


Command = Annotated[
    Union[JoinQuickMatch, CreateRoom, JoinRoom, PlaceShips, PlaceShip, Ready, Attack, ResetGame],
    Field(discriminator="type"),
]

command_adapter = TypeAdapter(Command)


def parse_command(raw: str) -> Command:
    """Разобрать JSON-кадр. Бросает pydantic.ValidationError."""
    return command_adapter.validate_json(raw)
