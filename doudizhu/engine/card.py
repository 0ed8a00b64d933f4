"""牌的定义 - 斗地主54张扑克牌的数据模型"""

from enum import IntEnum, Enum
from dataclasses import dataclass, field
from typing import List


class Rank(IntEnum):
    """点数枚举（数值越大牌越大）"""
    THREE = 3
    FOUR = 4
    FIVE = 5
    SIX = 6
    SEVEN = 7
    EIGHT = 8
    NINE = 9
    TEN = 10
    JACK = 11
    QUEEN = 12
    KING = 13
    ACE = 14
    TWO = 15
    BLACK_JOKER = 16
    RED_JOKER = 17


class Suit(str, Enum):
    """花色枚举"""
    HEART = "♥"
    DIAMOND = "♦"
    CLUB = "♣"
    SPADE = "♠"
    JOKER = "🃏"


# 点数显示映射
RANK_DISPLAY = {
    Rank.THREE: "3", Rank.FOUR: "4", Rank.FIVE: "5",
    Rank.SIX: "6", Rank.SEVEN: "7", Rank.EIGHT: "8",
    Rank.NINE: "9", Rank.TEN: "10", Rank.JACK: "J",
    Rank.QUEEN: "Q", Rank.KING: "K", Rank.ACE: "A",
    Rank.TWO: "2", Rank.BLACK_JOKER: "小王", Rank.RED_JOKER: "大王",
}

# 常规点数（不含大小王），从小到大
NORMAL_RANKS = [r for r in Rank if r < Rank.BLACK_JOKER]
NORMAL_SUITS = [Suit.HEART, Suit.DIAMOND, Suit.CLUB, Suit.SPADE]


@dataclass
class Card:
    """
    一张扑克牌。

    rank/suit 构造后只读；selected 是给界面选牌用的临时标记，
    不参与相等比较和哈希。
    """
    rank: Rank
    suit: Suit
    selected: bool = field(default=False, compare=False, repr=False)

    def __post_init__(self) -> None:
        is_joker_rank = self.rank in (Rank.BLACK_JOKER, Rank.RED_JOKER)
        if is_joker_rank != (self.suit == Suit.JOKER):
            raise ValueError(f"非法的牌: rank={self.rank!r}, suit={self.suit!r}")

    def __setattr__(self, name: str, value) -> None:
        if name != "selected" and name in self.__dict__:
            raise AttributeError(f"Card.{name} 只读")
        object.__setattr__(self, name, value)

    @classmethod
    def joker(cls, rank: Rank) -> "Card":
        """构造王牌"""
        return cls(rank=rank, suit=Suit.JOKER)

    @property
    def value(self) -> int:
        """牌力值：3..15 为常规牌，16 小王，17 大王"""
        return int(self.rank)

    @property
    def is_joker(self) -> bool:
        return self.suit == Suit.JOKER

    @property
    def display(self) -> str:
        if self.is_joker:
            return RANK_DISPLAY[self.rank]
        return f"{self.suit.value}{RANK_DISPLAY[self.rank]}"

    def toggle_selected(self) -> None:
        """切换选中状态"""
        self.selected = not self.selected

    def __repr__(self) -> str:
        return self.display

    def __lt__(self, other: "Card") -> bool:
        return self.rank < other.rank

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Card):
            return NotImplemented
        return self.rank == other.rank and self.suit == other.suit

    def __hash__(self) -> int:
        return hash((self.rank, self.suit))


def create_deck() -> List[Card]:
    """按固定基础顺序创建一副54张标准扑克牌"""
    deck: List[Card] = []
    for suit in NORMAL_SUITS:
        for rank in NORMAL_RANKS:
            deck.append(Card(rank=rank, suit=suit))

    deck.append(Card.joker(Rank.BLACK_JOKER))
    deck.append(Card.joker(Rank.RED_JOKER))

    assert len(deck) == 54, f"牌数错误: {len(deck)}"
    return deck


def sort_cards(cards: List[Card]) -> List[Card]:
    """按点数排序手牌（从小到大）"""
    return sorted(cards, key=lambda c: c.rank)
