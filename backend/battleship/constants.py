"""Константы поля, флота и кодов комнат."""
import string
from typing import TypedDict


class ShipSpec(TypedDict):
    id: str
    size: int


BOARD_SIZE = 10

FLEET: list[ShipSpec] = [
    {"id": "carrier", "size": 5},
    {"id": "battleship", "size": 4},
    {"id": "cruiser", "size": 4},
    {"id": "submarine", "size": 3},
    {"id": "destroyer", "size": 2},
]

FLEET_IDS = [s["id"] for s in FLEET]
FLEET_SIZES: dict[str, int] = {s["id"]: s["size"] for s in FLEET}

ROOM_CODE_LENGTH = 6
ROOM_CODE_ALPHABET = string.ascii_uppercase + string.digits
