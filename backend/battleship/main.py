"""
Battleship API и WebSocket.
"""
import logging
import random
from pathlib import Path

from fastapi import FastAPI, WebSocket
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from .config import get_config
from .pairing import Registry
from .ws_handlers import ws_connect_and_loop
from .ws_manager import WSManager

logger = logging.getLogger(__name__)


def create_app(config=None, rng: random.Random | None = None) -> FastAPI:
    """Собрать приложение со своим реестром и менеджером соединений."""
    config = config or get_config()
    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    app = FastAPI(title="Battleship API")
    app.state.config = config
    app.state.registry = Registry(rng=rng, room_code_attempts=config.room_code_attempts)
    app.state.manager = WSManager()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health")
    def health():
        return {"status": "ok"}

    @app.get("/stats")
    def stats():
        return {
            "connections": len(app.state.manager),
            "matches": app.state.registry.counts(),
        }

    @app.websocket("/ws")
    async def websocket_endpoint(ws: WebSocket):
        logger.info("WS: connection attempt from %s", ws.client)
        await ws_connect_and_loop(ws, app.state.registry, app.state.manager, app.state.config)

    # Статика фронтенда (для разработки)
    frontend_path = Path(__file__).resolve().parent.parent.parent / "frontend"
    if frontend_path.is_dir():
        app.mount("/", StaticFiles(directory=str(frontend_path), html=True), name="frontend")

    return app


app = create_app()


def run() -> None:
    import uvicorn

    config = get_config()
    uvicorn.run("battleship.main:app", host=config.host, port=config.port)
