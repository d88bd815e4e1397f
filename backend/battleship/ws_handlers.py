"""
Обработка сообщений WebSocket: один цикл приёма на соединение.
Команда → реестр → события → рассылка.
"""
import logging

from fastapi import WebSocket
from pydantic import ValidationError
from starlette.websockets import WebSocketDisconnect, WebSocketState

from .board import Position
from .errors import BattleshipError, RoomFull, RoomNotFound
from .events import ROOM_FULL, ROOM_NOT_FOUND, Event, to_one
from .pairing import Registry
from .schemas import (
    Attack,
    CreateRoom,
    JoinQuickMatch,
    JoinRoom,
    PlaceShip,
    PlaceShips,
    Ready,
    ResetGame,
    parse_command,
)
from .ws_manager import WSManager

logger = logging.getLogger(__name__)


def _player_name(raw: str, connection_id: str, max_length: int) -> str:
    name = (raw or "").strip()[:max_length]
    return name or f"Player-{connection_id[:6]}"


def _dispatch(registry: Registry, config, connection_id: str, command) -> list[Event]:
    if isinstance(command, JoinQuickMatch):
        name = _player_name(command.player_name, connection_id, config.max_name_length)
        _, events = registry.quick_match(connection_id, name)
        return events
    if isinstance(command, CreateRoom):
        name = _player_name(command.player_name, connection_id, config.max_name_length)
        _, events = registry.create_room(connection_id, name)
        return events
    if isinstance(command, JoinRoom):
        name = _player_name(command.player_name, connection_id, config.max_name_length)
        _, events = registry.join_room(connection_id, name, command.room_code)
        return events
    if isinstance(command, PlaceShips):
        ships = [s.to_ship() for s in command.ships]
        return registry.place_ships(connection_id, ships)
    if isinstance(command, PlaceShip):
        origin = Position(command.row, command.col)
        return registry.place_ship(connection_id, command.ship_id, origin, command.orientation)
    if isinstance(command, Ready):
        return registry.ready(connection_id)
    if isinstance(command, Attack):
        return registry.attack(connection_id, Position(command.row, command.col))
    if isinstance(command, ResetGame):
        return registry.reset(connection_id)
    raise ValueError(f"unhandled command {command!r}")


async def handle_ws_message(
    registry: Registry,
    manager: WSManager,
    config,
    raw: str,
    connection_id: str,
) -> bool:
    """
    Обрабатывает одно сообщение клиента.
    Возвращает False если соединение нужно закрыть.
    """
    try:
        command = parse_command(raw)
    except ValidationError as e:
        logger.warning("WS: invalid message from %s: %s", connection_id, e.errors()[0]["msg"])
        return True
    logger.info("WS: msg from %s type=%s", connection_id, command.type)
    try:
        events = _dispatch(registry, config, connection_id, command)
    except RoomNotFound:
        events = [to_one(connection_id, ROOM_NOT_FOUND)]
    except RoomFull:
        events = [to_one(connection_id, ROOM_FULL)]
    except BattleshipError as e:
        # отказ виден только в логе, состояние не менялось
        logger.info("WS: %s from %s rejected: %s %s", command.type, connection_id, e.code, e)
        return True
    await manager.deliver(events)
    return True


async def ws_connect_and_loop(ws: WebSocket, registry: Registry, manager: WSManager, config) -> None:
    """
    Принять соединение, сообщить клиенту его id, дальше цикл приёма сообщений.
    При закрытии — выход из партии и уведомление соперника.
    """
    connection_id = None
    try:
        await ws.accept()
        connection_id = manager.connect(ws)
        logger.info("WS: accepted connection_id=%s", connection_id)
        await manager.send_to(connection_id, {"type": "connected", "playerId": connection_id})
        while True:
            msg = await ws.receive_text()
            if not await handle_ws_message(registry, manager, config, msg, connection_id):
                break
    except WebSocketDisconnect as e:
        logger.info("WS: client disconnected code=%s connection_id=%s", e.code, connection_id)
    except Exception as e:
        logger.exception("WS: error connection_id=%s: %s", connection_id, e)
        if ws.application_state == WebSocketState.CONNECTED:
            await ws.close(code=1011)
    finally:
        if connection_id:
            events = registry.disconnect(connection_id)
            manager.disconnect(connection_id)
            await manager.deliver(events)
            logger.info("WS: disconnected connection_id=%s", connection_id)
