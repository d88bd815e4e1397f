"""
События сервер → клиент. Ядро возвращает их как данные, доставкой занимается
ws_manager.
"""
from dataclasses import dataclass, field
from typing import Any

WAITING_FOR_OPPONENT = "waiting-for-opponent"
ROOM_CREATED = "room-created"
ROOM_NOT_FOUND = "room-not-found"
ROOM_FULL = "room-full"
GAME_START = "game-start"
SHIP_PLACED = "ship-placed"
SHIPS_PLACED = "ships-placed"
BATTLE_START = "battle-start"
ATTACK_RESULT = "attack-result"
GAME_OVER = "game-over"
PLAYER_DISCONNECTED = "player-disconnected"
GAME_RESET = "game-reset"


@dataclass(frozen=True)
class Event:
    type: str
    targets: tuple[str, ...]
    payload: dict[str, Any] = field(default_factory=dict)

    def to_message(self) -> dict[str, Any]:
        return {"type": self.type, **self.payload}


def to_one(connection_id: str, event_type: str, **payload: Any) -> Event:
    return Event(type=event_type, targets=(connection_id,), payload=payload)
