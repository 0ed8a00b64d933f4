"""游戏控制器 - 斗地主一局游戏的状态机（发牌、叫地主、出牌、结算）"""

import functools
import logging
import random
import threading
from typing import Callable, List, Optional

from doudizhu.engine.card import Card
from doudizhu.engine.deck import Deck
from doudizhu.engine.hand_type import CardCombo, ComboType
from doudizhu.engine.hand_detector import classify
from doudizhu.game.errors import CardNotInHandError, GameAlreadyStartedError
from doudizhu.game.game_state import (
    GameEvent, GameSnapshot, GameState, PlayerView, PlayResult,
)
from doudizhu.game.player import Player, Role

logger = logging.getLogger(__name__)

PLAYER_COUNT = 3
HAND_SIZE = 17
LANDLORD_CARD_COUNT = 3

DEFAULT_NAMES = ["玩家1", "玩家2", "玩家3"]

EventCallback = Callable[[GameEvent], None]


def _exclusive(method):
    """公开操作独占执行；期间产生的事件在释放锁之后再通知"""
    @functools.wraps(method)
    def wrapper(self: "Game", *args, **kwargs):
        with self._lock:
            try:
                result = method(self, *args, **kwargs)
            finally:
                events, self._pending_events = self._pending_events, []
        for event in events:
            for cb in list(self._callbacks):
                cb(event)
        return result
    return wrapper


class Game:
    """
    一局三人斗地主。

    状态流转：WAITING → DEALING → BIDDING → PLAYING → GAME_OVER，
    restart() 回到 WAITING 并立即重新开局。
    非法操作通过返回值报告，且不改变任何状态。
    """

    def __init__(
        self,
        player_names: Optional[List[str]] = None,
        rng: Optional[random.Random] = None,
    ):
        names = player_names or DEFAULT_NAMES
        assert len(names) == PLAYER_COUNT, "斗地主需要3名玩家"
        self._rng = rng or random.Random()
        self._players = [Player(id=i, name=name) for i, name in enumerate(names)]
        self._deck = Deck(rng=self._rng)
        self._state = GameState.WAITING
        self._current_index = 0
        self._last_combo: Optional[CardCombo] = None
        self._last_played_by: Optional[int] = None   # 出牌者座位号
        self._landlord_cards: List[Card] = []
        self._pass_count = 0        # 连续不出次数
        self._bidding_count = 0     # 已表态的叫地主次数

        self._lock = threading.Lock()
        self._callbacks: List[EventCallback] = []
        self._pending_events: List[GameEvent] = []

    # ============================================================
    #  只读访问
    # ============================================================

    @property
    def state(self) -> GameState:
        return self._state

    @property
    def players(self) -> List[Player]:
        return list(self._players)

    @property
    def current_player(self) -> Player:
        return self._players[self._current_index]

    @property
    def landlord_cards(self) -> List[Card]:
        return list(self._landlord_cards)

    @property
    def last_played_combo(self) -> CardCombo:
        """当前轮桌面上的牌；还没人出牌时为 PASS"""
        if self._last_combo is None:
            return classify([])
        return self._last_combo

    @property
    def last_played_by(self) -> Optional[Player]:
        if self._last_played_by is None:
            return None
        return self.get_player(self._last_played_by)

    @property
    def pass_count(self) -> int:
        return self._pass_count

    @property
    def bidding_count(self) -> int:
        return self._bidding_count

    def get_player(self, player_id: int) -> Player:
        for p in self._players:
            if p.id == player_id:
                return p
        raise KeyError(f"没有座位号为 {player_id} 的玩家")

    def snapshot(self) -> GameSnapshot:
        """生成只读快照"""
        with self._lock:
            in_turn = self._state in (GameState.BIDDING, GameState.PLAYING)
            last = self._last_combo
            return GameSnapshot(
                state=self._state,
                players=tuple(PlayerView.of(p) for p in self._players),
                current_player_id=self.current_player.id if in_turn else None,
                landlord_cards=tuple(self._landlord_cards),
                last_combo=CardCombo(last.type, last.cards, last.main_value) if last else None,
                last_played_by=self._last_played_by,
            )

    # ============================================================
    #  事件
    # ============================================================

    def on_event(self, callback: EventCallback) -> None:
        """注册事件回调"""
        self._callbacks.append(callback)

    def _emit(self, event: GameEvent) -> None:
        self._pending_events.append(event)

    # ============================================================
    #  开局 / 重开
    # ============================================================

    @_exclusive
    def start(self) -> None:
        """洗牌发牌，进入叫地主阶段"""
        self._start()

    @_exclusive
    def restart(self) -> None:
        """无条件回到 WAITING 并重新开局"""
        self._restart()

    def _restart(self) -> None:
        self._state = GameState.WAITING
        self._start()

    def _start(self) -> None:
        if self._state != GameState.WAITING:
            raise GameAlreadyStartedError(f"游戏已经开始 (state={self._state.value})")

        for p in self._players:
            p.reset()

        self._last_combo = None
        self._last_played_by = None
        self._pass_count = 0
        self._bidding_count = 0

        self._state = GameState.DEALING
        self._deck.reset()

        # 每人17张，剩3张做底牌
        for p in self._players:
            p.add_cards(self._deck.deal(HAND_SIZE))
        self._landlord_cards = self._deck.deal(LANDLORD_CARD_COUNT)

        self._state = GameState.BIDDING

        # 随机选首叫玩家
        self._current_index = self._rng.randrange(PLAYER_COUNT)
        self._set_active(self._current_index)

        logger.info("发牌完成，首叫玩家: %s", self.current_player.name)
        self._emit(GameEvent(self._state, self.current_player.id, "deal"))

    # ============================================================
    #  叫地主阶段
    # ============================================================

    @_exclusive
    def bid(self, player_id: int, accept: bool) -> bool:
        """
        当前玩家表态是否叫地主。
        不在叫地主阶段或不是该玩家的回合时返回 False，状态不变。
        三人都不叫时整局重新发牌（仍返回 True）。
        """
        if self._state != GameState.BIDDING:
            return False
        player = self.current_player
        if player.id != player_id:
            return False

        self._bidding_count += 1
        self._emit(GameEvent(self._state, player_id, "bid", accept))

        if accept:
            self._assign_landlord(player)
            return True

        player.role = Role.FARMER
        logger.debug("%s 不叫", player.name)

        if (self._bidding_count >= PLAYER_COUNT
                and all(p.role == Role.FARMER for p in self._players)):
            logger.info("三人都不叫，重新发牌")
            self._emit(GameEvent(self._state, player_id, "redeal"))
            self._restart()
            return True

        self._next_turn()
        return True

    def _assign_landlord(self, landlord: Player) -> None:
        """确定地主：分配角色、发底牌"""
        landlord.role = Role.LANDLORD
        landlord.add_cards(list(self._landlord_cards))

        for p in self._players:
            if p.id != landlord.id:
                p.role = Role.FARMER

        self._state = GameState.PLAYING
        logger.info("%s 成为地主，底牌: %s", landlord.name, self._landlord_cards)

    # ============================================================
    #  出牌阶段
    # ============================================================

    @_exclusive
    def play(self, player_id: int, cards: List[Card]) -> PlayResult:
        """
        当前玩家出牌。空列表视为不出。
        出不在手中的牌属于调用方违约，抛出 CardNotInHandError。
        """
        check = self._check_turn(player_id)
        if check is not None:
            return check

        if not cards:
            return self._pass(player_id)

        player = self.current_player
        if not player.has_cards(cards):
            logger.warning("%s 试图打出不在手中的牌: %s", player.name, cards)
            raise CardNotInHandError(f"{player.name} 手中没有 {cards}")

        combo = classify(cards)
        if not combo.is_valid():
            logger.debug("%s 出牌无效: %s", player.name, combo)
            return PlayResult.INVALID_COMBO

        # 跟牌时必须压过上家（自己的牌无人压时不用比）
        if (self._last_combo is not None
                and self._last_played_by != player.id
                and not combo.can_beat(self._last_combo)):
            logger.debug("%s 压不过上家: %s vs %s", player.name, combo, self._last_combo)
            return PlayResult.CANNOT_BEAT

        player.play_cards(cards)
        self._last_combo = combo
        self._last_played_by = player.id
        self._pass_count = 0

        logger.debug("%s 出牌 %s", player.name, combo)
        self._emit(GameEvent(self._state, player.id, "play", combo))

        if player.hand_size == 0:
            self._finish_game(player)
            return PlayResult.SUCCESS

        self._next_turn()
        return PlayResult.SUCCESS

    @_exclusive
    def pass_(self, player_id: int) -> PlayResult:
        """当前玩家不出"""
        check = self._check_turn(player_id)
        if check is not None:
            return check
        return self._pass(player_id)

    def _check_turn(self, player_id: int) -> Optional[PlayResult]:
        if self._state != GameState.PLAYING:
            return PlayResult.GAME_NOT_STARTED
        if self.current_player.id != player_id:
            return PlayResult.NOT_YOUR_TURN
        return None

    def _pass(self, player_id: int) -> PlayResult:
        """处理不出；桌面没牌或牌是自己出的时不能不出"""
        if self._last_combo is None or self._last_played_by == player_id:
            return PlayResult.INVALID_COMBO

        self._pass_count += 1
        self._emit(GameEvent(self._state, player_id, "pass"))

        # 其余玩家都不出，出牌者重新获得出牌权
        if self._pass_count >= PLAYER_COUNT - 1:
            leader = self._last_played_by
            self._current_index = self._seat_of(leader)
            self._set_active(self._current_index)
            self._last_combo = None
            self._last_played_by = None
            self._pass_count = 0
            logger.debug("一轮结束，%s 重新出牌", self.current_player.name)
            self._emit(GameEvent(self._state, leader, "trick_reset"))
        else:
            self._next_turn()
        return PlayResult.SUCCESS

    # ============================================================
    #  结算阶段
    # ============================================================

    def _finish_game(self, winner: Player) -> None:
        """有人出完牌：地主出完则地主赢，否则两个农民都赢"""
        self._state = GameState.GAME_OVER
        landlord_wins = winner.is_landlord

        for p in self._players:
            p.is_active = False
            p.is_winner = p.is_landlord == landlord_wins

        logger.info("游戏结束，%s 出完牌，%s获胜",
                    winner.name, "地主" if landlord_wins else "农民")
        self._emit(GameEvent(self._state, winner.id, "game_over", winner.id))

    # ============================================================
    #  轮转
    # ============================================================

    def _seat_of(self, player_id: int) -> int:
        for i, p in enumerate(self._players):
            if p.id == player_id:
                return i
        raise KeyError(player_id)

    def _set_active(self, index: int) -> None:
        for i, p in enumerate(self._players):
            p.is_active = i == index

    def _next_turn(self) -> None:
        """按座位顺序轮到下一个玩家"""
        self._current_index = (self._current_index + 1) % PLAYER_COUNT
        self._set_active(self._current_index)
