"""玩家模型 - 斗地主三人玩家的数据结构"""

from collections import Counter
from enum import Enum
from dataclasses import dataclass, field
from typing import List

from doudizhu.engine.card import Card, sort_cards
from doudizhu.game.errors import CardNotInHandError, NoCardsSelectedError


class Role(str, Enum):
    """玩家角色"""
    LANDLORD = "LANDLORD"   # 地主
    FARMER = "FARMER"       # 农民


@dataclass
class Player:
    """一个玩家"""
    id: int                          # 座位号 0/1/2
    name: str                        # 显示名
    hand: List[Card] = field(default_factory=list)
    role: Role = Role.FARMER
    is_active: bool = False          # 是否轮到该玩家
    is_winner: bool = False

    @property
    def hand_size(self) -> int:
        return len(self.hand)

    @property
    def remaining_card_count(self) -> int:
        return len(self.hand)

    @property
    def is_landlord(self) -> bool:
        return self.role == Role.LANDLORD

    @property
    def selected_cards(self) -> List[Card]:
        return [c for c in self.hand if c.selected]

    def sort_hand(self) -> None:
        """手牌排序"""
        self.hand = sort_cards(self.hand)

    def add_cards(self, cards: List[Card]) -> None:
        """加入手牌并保持有序"""
        self.hand.extend(cards)
        self.sort_hand()

    def has_cards(self, cards: List[Card]) -> bool:
        """检查手牌中是否包含指定的牌（按张数计）"""
        held = Counter(self.hand)
        wanted = Counter(cards)
        return all(held[card] >= n for card, n in wanted.items())

    def remove_cards(self, cards: List[Card]) -> None:
        """从手牌中移除指定的牌"""
        for card in cards:
            self.hand.remove(card)

    def play_cards(self, cards: List[Card]) -> List[Card]:
        """出牌：校验后从手牌移除，返回出掉的牌"""
        if not self.has_cards(cards):
            raise CardNotInHandError(f"{self.name} 手中没有 {cards}")
        self.remove_cards(cards)
        return list(cards)

    def play_selected_cards(self) -> List[Card]:
        """打出所有选中的牌"""
        selected = self.selected_cards
        if not selected:
            raise NoCardsSelectedError(f"{self.name} 没有选中任何牌")
        for card in selected:
            card.selected = False
        return self.play_cards(selected)

    def clear_selection(self) -> None:
        for card in self.hand:
            card.selected = False

    def reset(self) -> None:
        """新一局重置"""
        self.hand.clear()
        self.role = Role.FARMER
        self.is_active = False
        self.is_winner = False
