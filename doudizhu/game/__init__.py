# 游戏流程控制模块
from .player import Player, Role
from .game_state import GameState, PlayResult, GameEvent, GameSnapshot, PlayerView
from .controller import Game
from .errors import (
    DoudizhuError, GameAlreadyStartedError, CardNotInHandError, NoCardsSelectedError,
)
