"""牌型检测器 - 识别一组牌的牌型并构建 CardCombo"""

from typing import Callable, List, Optional
from collections import Counter

from .card import Card, Rank
from .hand_type import ComboType, CardCombo, ROCKET_VALUE


# 顺子/连对/飞机中不允许出现的点数
_CHAIN_FORBIDDEN = {Rank.TWO, Rank.BLACK_JOKER, Rank.RED_JOKER}

Detector = Callable[[List[Card], int, Counter], Optional[CardCombo]]


def classify(cards: List[Card]) -> CardCombo:
    """
    识别一组牌的牌型。
    空列表为 PASS；不构成任何合法牌型时返回 INVALID。
    结果只取决于各张牌的点数（王牌的大小王之分也体现在点数上）。
    """
    cards = list(cards)
    if not cards:
        return CardCombo(ComboType.PASS, cards)

    n = len(cards)
    rank_counts = Counter(c.rank for c in cards)

    # 按检测优先级依次尝试，前面的命中即返回
    for detector in _DETECTORS:
        combo = detector(cards, n, rank_counts)
        if combo is not None:
            return combo
    return CardCombo(ComboType.INVALID, cards)


def can_beat(current: CardCombo, previous: CardCombo) -> bool:
    """判断 current 能否压过 previous"""
    return current.can_beat(previous)


# ============================================================
#  辅助函数
# ============================================================

def _groups_by_count(rank_counts: Counter, count: int) -> List[Rank]:
    """返回出现恰好 count 次的所有点数，按点数排序"""
    return sorted(r for r, c in rank_counts.items() if c == count)


def _is_chain(ranks: List[Rank]) -> bool:
    """已排序的 ranks 是否严格连续，且不含2和大小王"""
    if any(r in _CHAIN_FORBIDDEN for r in ranks):
        return False
    return all(ranks[i + 1] - ranks[i] == 1 for i in range(len(ranks) - 1))


def _airplane_body(rc: Counter) -> Optional[List[Rank]]:
    """
    飞机的机身：所有恰好出现3次的点数。
    至少2组且连续（不含2和王）才返回，否则 None。
    """
    trios = _groups_by_count(rc, 3)
    if len(trios) < 2 or not _is_chain(trios):
        return None
    return trios


# ============================================================
#  基础牌型检测
# ============================================================

def _detect_rocket(cards: List[Card], n: int, rc: Counter) -> Optional[CardCombo]:
    """火箭：大王 + 小王"""
    if n == 2 and Rank.BLACK_JOKER in rc and Rank.RED_JOKER in rc:
        return CardCombo(ComboType.ROCKET, cards, ROCKET_VALUE)
    return None


def _detect_bomb(cards: List[Card], n: int, rc: Counter) -> Optional[CardCombo]:
    """炸弹：四张相同点数"""
    if n == 4 and len(rc) == 1:
        rank = next(iter(rc))
        return CardCombo(ComboType.BOMB, cards, int(rank))
    return None


def _detect_single(cards: List[Card], n: int, rc: Counter) -> Optional[CardCombo]:
    """单张"""
    if n == 1:
        return CardCombo(ComboType.SINGLE, cards, cards[0].value)
    return None


def _detect_pair(cards: List[Card], n: int, rc: Counter) -> Optional[CardCombo]:
    """对子：两张相同点数"""
    if n == 2 and len(rc) == 1:
        rank = next(iter(rc))
        return CardCombo(ComboType.PAIR, cards, int(rank))
    return None


def _detect_trio(cards: List[Card], n: int, rc: Counter) -> Optional[CardCombo]:
    """三张：三张相同点数"""
    if n == 3 and len(rc) == 1:
        rank = next(iter(rc))
        return CardCombo(ComboType.TRIO, cards, int(rank))
    return None


# ============================================================
#  带牌类检测
# ============================================================

def _detect_trio_with_single(cards: List[Card], n: int, rc: Counter) -> Optional[CardCombo]:
    """三带一：三张 + 一张单牌"""
    if n != 4 or len(rc) != 2:
        return None
    trios = _groups_by_count(rc, 3)
    if len(trios) == 1:
        return CardCombo(ComboType.TRIO_WITH_SINGLE, cards, int(trios[0]))
    return None


def _detect_trio_with_pair(cards: List[Card], n: int, rc: Counter) -> Optional[CardCombo]:
    """三带一对：三张 + 一个对子"""
    if n != 5 or len(rc) != 2:
        return None
    trios = _groups_by_count(rc, 3)
    pairs = _groups_by_count(rc, 2)
    if len(trios) == 1 and len(pairs) == 1:
        return CardCombo(ComboType.TRIO_WITH_PAIR, cards, int(trios[0]))
    return None


def _detect_four_with_two_single(cards: List[Card], n: int, rc: Counter) -> Optional[CardCombo]:
    """四带二单：四张 + 两张单牌（两张可以同点数）"""
    if n != 6:
        return None
    fours = _groups_by_count(rc, 4)
    if len(fours) == 1:
        return CardCombo(ComboType.FOUR_WITH_TWO_SINGLE, cards, int(fours[0]))
    return None


def _detect_four_with_two_pair(cards: List[Card], n: int, rc: Counter) -> Optional[CardCombo]:
    """四带二对：四张 + 两个对子"""
    if n != 8:
        return None
    fours = _groups_by_count(rc, 4)
    pairs = _groups_by_count(rc, 2)
    if len(fours) == 1 and len(pairs) == 2:
        return CardCombo(ComboType.FOUR_WITH_TWO_PAIR, cards, int(fours[0]))
    return None


# ============================================================
#  顺子类检测
# ============================================================

def _detect_straight(cards: List[Card], n: int, rc: Counter) -> Optional[CardCombo]:
    """顺子：≥5张连续单牌，不含2和王"""
    if n < 5:
        return None
    # 每个点数恰好出现1次
    if any(c != 1 for c in rc.values()):
        return None
    ranks = sorted(rc)
    if _is_chain(ranks):
        return CardCombo(ComboType.STRAIGHT, cards, int(ranks[-1]))
    return None


def _detect_straight_pair(cards: List[Card], n: int, rc: Counter) -> Optional[CardCombo]:
    """连对：≥3对连续对子，不含2和王"""
    if n < 6 or n % 2 != 0 or len(rc) < 3:
        return None
    # 每个点数恰好出现2次
    if any(c != 2 for c in rc.values()):
        return None
    ranks = sorted(rc)
    if _is_chain(ranks):
        return CardCombo(ComboType.STRAIGHT_PAIR, cards, int(ranks[-1]))
    return None


# ============================================================
#  飞机类检测
# ============================================================

def _detect_airplane(cards: List[Card], n: int, rc: Counter) -> Optional[CardCombo]:
    """飞机不带：≥2组连续三张，不含2和王，没有其他牌"""
    if n < 6 or n % 3 != 0:
        return None
    body = _airplane_body(rc)
    if body and len(body) * 3 == n:
        return CardCombo(ComboType.AIRPLANE, cards, int(body[-1]))
    return None


def _detect_airplane_with_single(cards: List[Card], n: int, rc: Counter) -> Optional[CardCombo]:
    """飞机带单：连续三张 + 等量单牌（翅膀可以是拆开的对子）"""
    body = _airplane_body(rc)
    if not body:
        return None
    trio_count = len(body)
    # 总张数 = 三张组数 × (3 + 1)
    if n != trio_count * 4:
        return None
    # 翅膀只能由单张或对子组成，不能有炸弹
    singles = len(_groups_by_count(rc, 1))
    pairs = len(_groups_by_count(rc, 2))
    if singles + pairs * 2 != trio_count:
        return None
    return CardCombo(ComboType.AIRPLANE_WITH_SINGLE, cards, int(body[-1]))


def _detect_airplane_with_pair(cards: List[Card], n: int, rc: Counter) -> Optional[CardCombo]:
    """飞机带对：连续三张 + 等量对子"""
    body = _airplane_body(rc)
    if not body:
        return None
    trio_count = len(body)
    # 总张数 = 三张组数 × (3 + 2)
    if n != trio_count * 5:
        return None
    if len(_groups_by_count(rc, 2)) != trio_count:
        return None
    return CardCombo(ComboType.AIRPLANE_WITH_PAIR, cards, int(body[-1]))


# 检测优先级：火箭 > 炸弹 > 单张/对子/三张 > 三带 > 顺子类 > 飞机类 > 四带二
_DETECTORS: List[Detector] = [
    _detect_rocket,
    _detect_bomb,
    _detect_single,
    _detect_pair,
    _detect_trio,
    _detect_trio_with_single,
    _detect_trio_with_pair,
    _detect_straight,
    _detect_straight_pair,
    _detect_airplane,
    _detect_airplane_with_single,
    _detect_airplane_with_pair,
    _detect_four_with_two_single,
    _detect_four_with_two_pair,
]
