import random

import pytest

from battleship.board import Orientation, Position, Ship, cells_for
from battleship.constants import FLEET_SIZES
from battleship.match import Match
from battleship.pairing import Registry

# все корабли на чётных строках, нечётные строки пустые
FLEET_ORIGINS = {
    "carrier": (0, 0),
    "battleship": (2, 0),
    "cruiser": (4, 0),
    "submarine": (6, 0),
    "destroyer": (8, 0),
}


class TestConfig:
    allowed_origins = ["*"]
    log_level = "INFO"
    host = "127.0.0.1"
    port = 8000
    room_code_attempts = 5
    max_name_length = 16


def build_fleet() -> list[Ship]:
    return [
        Ship(id=ship_id, cells=cells_for(Position(*origin), FLEET_SIZES[ship_id], Orientation.HORIZONTAL))
        for ship_id, origin in FLEET_ORIGINS.items()
    ]


def fleet_wire() -> list[dict]:
    return [s.to_dict() for s in build_fleet()]


@pytest.fixture()
def make_fleet():
    return build_fleet


@pytest.fixture()
def wire_fleet():
    return fleet_wire()


@pytest.fixture()
def rng():
    return random.Random(1234)


@pytest.fixture()
def registry(rng):
    return Registry(rng=rng, room_code_attempts=TestConfig.room_code_attempts)


@pytest.fixture()
def test_config():
    return TestConfig()


@pytest.fixture()
def setup_match(rng):
    """Партия в фазе setup с игроками a и b."""
    match = Match(id="m1", rng=rng)
    match.add_player("a", "Alice")
    match.add_player("b", "Bob")
    return match


@pytest.fixture()
def battle_match(setup_match):
    """Партия в фазе battle, оба флота расставлены одинаково."""
    setup_match.submit_fleet("a", build_fleet())
    setup_match.submit_fleet("b", build_fleet())
    return setup_match
