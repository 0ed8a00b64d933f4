"""牌组 - 54张牌的洗牌与发牌"""

import logging
import random
from typing import List, Optional

from .card import Card, create_deck

logger = logging.getLogger(__name__)


class Deck:
    """
    一副可变的牌组。

    新建时按基础顺序持有54张牌（未洗牌）；reset() 重建并洗牌。
    随机源可注入，便于测试复现。
    """

    def __init__(self, rng: Optional[random.Random] = None):
        self._rng = rng or random.Random()
        self._cards: List[Card] = create_deck()

    def reset(self) -> None:
        """重建完整的54张牌并洗牌"""
        self._cards = create_deck()
        self.shuffle()

    def shuffle(self) -> None:
        """原地洗牌（Fisher-Yates，从末位向前交换）"""
        self._rng.shuffle(self._cards)

    def deal(self, count: int) -> List[Card]:
        """
        发出牌堆最前面的 count 张牌。
        剩余不足时返回全部剩余的牌，不会报错。
        """
        count = max(count, 0)
        dealt = self._cards[:count]
        del self._cards[:count]
        logger.debug("发牌 %d 张，剩余 %d 张", len(dealt), len(self._cards))
        return dealt

    @property
    def remaining_count(self) -> int:
        return len(self._cards)

    @property
    def cards(self) -> List[Card]:
        """当前剩余牌的副本"""
        return list(self._cards)

    def __len__(self) -> int:
        return len(self._cards)
