"""
Менеджер WebSocket: подключения по connection_id и доставка событий партий.
"""
import logging
import uuid
from typing import Any, Iterable

from fastapi import WebSocket
from starlette.websockets import WebSocketState

from .events import Event

logger = logging.getLogger(__name__)


class Connection:
    def __init__(self, ws: WebSocket, connection_id: str):
        self.ws = ws
        self.connection_id = connection_id

    @property
    def writable(self) -> bool:
        return (
            self.ws.client_state == WebSocketState.CONNECTED
            and self.ws.application_state == WebSocketState.CONNECTED
        )


class WSManager:
    def __init__(self):
        self._by_id: dict[str, Connection] = {}

    def __len__(self) -> int:
        return len(self._by_id)

    def connect(self, ws: WebSocket, connection_id: str | None = None) -> str:
        """Зарегистрировать принятый сокет, вернуть его connection_id."""
        connection_id = connection_id or uuid.uuid4().hex
        self._by_id[connection_id] = Connection(ws, connection_id)
        return connection_id

    def disconnect(self, connection_id: str) -> None:
        self._by_id.pop(connection_id, None)

    async def send_to(self, connection_id: str, payload: dict[str, Any]) -> bool:
        conn = self._by_id.get(connection_id)
        if not conn or not conn.writable:
            return False
        try:
            await conn.ws.send_json(payload)
            return True
        except Exception as e:
            logger.warning("send_to %s: %s", connection_id, e)
            return False

    async def deliver(self, events: Iterable[Event]) -> None:
        """
        Разослать события их адресатам. Недоступный сокет пропускается,
        остальные получают своё.
        """
        for event in events:
            message = event.to_message()
            for connection_id in event.targets:
                await self.send_to(connection_id, message)
