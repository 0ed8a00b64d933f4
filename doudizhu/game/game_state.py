"""对局状态定义 - 状态枚举、出牌结果、事件与只读快照"""

from enum import Enum
from dataclasses import dataclass
from typing import Any, Optional, Tuple

from doudizhu.engine.card import Card
from doudizhu.engine.hand_type import CardCombo
from doudizhu.game.player import Player, Role


class GameState(str, Enum):
    """游戏阶段"""
    WAITING = "WAITING"         # 等待开始
    DEALING = "DEALING"         # 发牌中（只在 start() 内部出现）
    BIDDING = "BIDDING"         # 叫地主
    PLAYING = "PLAYING"         # 出牌中
    GAME_OVER = "GAME_OVER"     # 已结束


class PlayResult(str, Enum):
    """出牌/不出的结果"""
    SUCCESS = "SUCCESS"
    INVALID_COMBO = "INVALID_COMBO"         # 无效牌型
    CANNOT_BEAT = "CANNOT_BEAT"             # 压不过上家
    NOT_YOUR_TURN = "NOT_YOUR_TURN"         # 不是你的回合
    GAME_NOT_STARTED = "GAME_NOT_STARTED"   # 不在出牌阶段


@dataclass(frozen=True)
class GameEvent:
    """游戏事件记录"""
    state: GameState
    player_id: Optional[int]
    action: str                  # "deal", "bid", "redeal", "play", "pass", "trick_reset", "game_over"
    data: Any = None             # 叫地主与否 / CardCombo / 赢家座位号


@dataclass(frozen=True)
class PlayerView:
    """玩家的只读视图"""
    id: int
    name: str
    role: Role
    cards: Tuple[Card, ...]
    is_active: bool
    is_winner: bool

    @classmethod
    def of(cls, player: Player) -> "PlayerView":
        return cls(
            id=player.id,
            name=player.name,
            role=player.role,
            cards=tuple(player.hand),
            is_active=player.is_active,
            is_winner=player.is_winner,
        )


@dataclass(frozen=True)
class GameSnapshot:
    """一局游戏在某一时刻的只读快照，供界面/网络层展示"""
    state: GameState
    players: Tuple[PlayerView, ...]
    current_player_id: Optional[int]
    landlord_cards: Tuple[Card, ...]
    last_combo: Optional[CardCombo]      # 当前轮桌面上的牌，没有则为 None
    last_played_by: Optional[int]
