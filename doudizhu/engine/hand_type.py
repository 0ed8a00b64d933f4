"""牌型定义 - 斗地主16种牌型标签与出牌组合"""

from enum import Enum
from dataclasses import dataclass, field
from typing import List

from .card import Card


class ComboType(str, Enum):
    """牌型枚举"""
    PASS = "PASS"                                   # 不出
    SINGLE = "SINGLE"                               # 单张
    PAIR = "PAIR"                                   # 对子
    TRIO = "TRIO"                                   # 三张
    TRIO_WITH_SINGLE = "TRIO_WITH_SINGLE"           # 三带一
    TRIO_WITH_PAIR = "TRIO_WITH_PAIR"               # 三带一对
    STRAIGHT = "STRAIGHT"                           # 顺子 (≥5张)
    STRAIGHT_PAIR = "STRAIGHT_PAIR"                 # 连对 (≥3对)
    AIRPLANE = "AIRPLANE"                           # 飞机不带
    AIRPLANE_WITH_SINGLE = "AIRPLANE_WITH_SINGLE"   # 飞机带单
    AIRPLANE_WITH_PAIR = "AIRPLANE_WITH_PAIR"       # 飞机带对
    FOUR_WITH_TWO_SINGLE = "FOUR_WITH_TWO_SINGLE"   # 四带二单
    FOUR_WITH_TWO_PAIR = "FOUR_WITH_TWO_PAIR"       # 四带二对
    BOMB = "BOMB"                                   # 炸弹
    ROCKET = "ROCKET"                               # 火箭(王炸)
    INVALID = "INVALID"                             # 非法牌型


# 火箭的主值，大于任何真实点数
ROCKET_VALUE = 100


@dataclass
class CardCombo:
    """一手出牌的结构化表示，由 hand_detector.classify 生成"""
    type: ComboType
    cards: List[Card] = field(default_factory=list)
    main_value: int = 0   # 主牌点数（同牌型/炸弹之间比较用）

    def __post_init__(self) -> None:
        self.cards = list(self.cards)

    @property
    def length(self) -> int:
        return len(self.cards)

    @property
    def is_bomb_like(self) -> bool:
        return self.type in (ComboType.BOMB, ComboType.ROCKET)

    def is_valid(self) -> bool:
        return self.type != ComboType.INVALID

    def is_empty(self) -> bool:
        return not self.cards

    def can_beat(self, other: "CardCombo") -> bool:
        """
        判断本手牌能否压过 other。
        规则：
        1. 对方不出（PASS）时，任何合法牌型都可以出
        2. 火箭压一切
        3. 炸弹压除火箭外的一切，炸弹之间比点数
        4. 其余牌型必须同类型、同张数，比主牌点数
        """
        if other.type == ComboType.PASS:
            return self.is_valid()

        if self.type == ComboType.ROCKET:
            return True

        if self.type == ComboType.BOMB:
            if other.type == ComboType.ROCKET:
                return False
            if other.type == ComboType.BOMB:
                return self.main_value > other.main_value
            return True

        if self.type != other.type:
            return False
        if self.length != other.length:
            return False
        return self.main_value > other.main_value

    def __repr__(self) -> str:
        cards_str = " ".join(c.display for c in self.cards)
        return f"[{self.type.value}] {cards_str}"
