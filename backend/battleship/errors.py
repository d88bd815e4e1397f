"""
Отказы команд. Все восстановимы: команда отклоняется до изменения состояния,
об ошибке узнаёт только отправитель.
"""


class BattleshipError(Exception):
    """Базовый класс отказа команды."""

    code = "error"


class RoomNotFound(BattleshipError):
    code = "room-not-found"


class RoomFull(BattleshipError):
    code = "room-full"


class MatchFull(BattleshipError):
    code = "match-full"


class InvalidPlacement(BattleshipError):
    code = "invalid-placement"

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class InvalidTarget(BattleshipError):
    code = "invalid-target"


class CellAlreadyTargeted(BattleshipError):
    code = "cell-already-targeted"


class NotYourTurn(BattleshipError):
    code = "not-your-turn"


class WrongPhase(BattleshipError):
    code = "wrong-phase"


class UnknownPlayer(BattleshipError):
    code = "unknown-player"
