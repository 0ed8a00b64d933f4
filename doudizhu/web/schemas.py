"""
Pydantic 请求/响应模型
"""

from typing import List, Optional
from pydantic import BaseModel, Field


# ============= 请求 =============

class CardSchema(BaseModel):
    """一张牌：rank 为牌力值(3..17)，suit 为花色符号"""
    rank: int = Field(ge=3, le=17)
    suit: str


class BidRequest(BaseModel):
    """叫地主表态"""
    player_id: int
    accept: bool


class PlayRequest(BaseModel):
    """出牌，cards 为空视为不出"""
    player_id: int
    cards: List[CardSchema] = Field(default_factory=list)


class PassRequest(BaseModel):
    """不出"""
    player_id: int


# ============= 响应 =============

class CardView(CardSchema):
    display: str


class PlayerSchema(BaseModel):
    id: int
    name: str
    role: str
    hand_size: int
    hand: List[CardView]
    is_active: bool
    is_winner: bool


class ComboSchema(BaseModel):
    type: str
    type_name: str
    main_value: int
    cards: List[CardView]


class GameStateSchema(BaseModel):
    """对局快照"""
    state: str
    players: List[PlayerSchema]
    current_player_id: Optional[int] = None
    landlord_cards: List[CardView]
    last_combo: Optional[ComboSchema] = None
    last_played_by: Optional[int] = None


class BidResponse(BaseModel):
    success: bool
    game: GameStateSchema


class PlayResponse(BaseModel):
    result: str
    game: GameStateSchema
