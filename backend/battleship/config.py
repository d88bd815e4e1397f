"""Конфигурация приложения."""
import os
from functools import lru_cache


@lru_cache
def get_config():
    return type("Config", (), {
        "allowed_origins": os.environ.get("ALLOWED_ORIGINS", "*").split(","),
        "log_level": os.environ.get("LOG_LEVEL", "INFO").upper(),
        "host": os.environ.get("HOST", "0.0.0.0"),
        "port": int(os.environ.get("PORT", "8000")),
        "room_code_attempts": int(os.environ.get("ROOM_CODE_ATTEMPTS", "20")),
        "max_name_length": int(os.environ.get("MAX_NAME_LENGTH", "32")),
    })()
