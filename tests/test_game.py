"""Game 状态机单元测试 - 开局、叫地主、出牌、不出、结算"""

import random
import threading
from dataclasses import FrozenInstanceError

import pytest
from doudizhu.engine.card import Card, Rank, Suit, create_deck
from doudizhu.engine.hand_type import ComboType
from doudizhu.game.controller import Game
from doudizhu.game.errors import CardNotInHandError, GameAlreadyStartedError
from doudizhu.game.game_state import GameState, PlayResult
from doudizhu.game.player import Role


# ============================================================
#  辅助工具
# ============================================================

def _c(rank: Rank, suit: Suit = Suit.SPADE) -> Card:
    """快速创建一张牌"""
    return Card(rank=rank, suit=suit)


def _active(game: Game):
    actives = [p for p in game.players if p.is_active]
    assert len(actives) == 1
    return actives[0]


def _seat(game: Game, offset: int):
    """以当前玩家为0，按座位顺序取玩家"""
    idx = game.players.index(game.current_player)
    return game.players[(idx + offset) % 3]


def _total_cards(game: Game) -> int:
    return sum(p.hand_size for p in game.players) + len(game.landlord_cards) + game._deck.remaining_count


@pytest.fixture
def game():
    return Game(rng=random.Random(2024))


@pytest.fixture
def started(game):
    game.start()
    return game


@pytest.fixture
def playing(started):
    """当前玩家叫地主后进入出牌阶段"""
    started.bid(started.current_player.id, True)
    return started


def _set_hands(game: Game, *hands):
    """从地主（当前玩家）开始按座位顺序设置手牌"""
    for offset, hand in enumerate(hands):
        _seat(game, offset).hand = list(hand)


# ============================================================
#  初始状态
# ============================================================

class TestInitial:
    def test_waiting(self, game):
        assert game.state == GameState.WAITING

    def test_three_farmers_none_active(self, game):
        assert len(game.players) == 3
        assert all(p.role == Role.FARMER for p in game.players)
        assert not any(p.is_active for p in game.players)

    def test_custom_names(self):
        g = Game(player_names=["甲", "乙", "丙"])
        assert [p.name for p in g.players] == ["甲", "乙", "丙"]

    def test_no_standing_hand(self, game):
        assert game.last_played_combo.type == ComboType.PASS
        assert game.last_played_by is None


# ============================================================
#  开局
# ============================================================

class TestStart:
    """发牌与进入叫地主"""

    def test_bidding_state(self, started):
        assert started.state == GameState.BIDDING

    def test_17_cards_each_and_3_bottom(self, started):
        assert all(p.hand_size == 17 for p in started.players)
        assert len(started.landlord_cards) == 3

    def test_exactly_one_active(self, started):
        assert _active(started) is started.current_player

    def test_cards_conserved(self, started):
        everything = [c for p in started.players for c in p.hand] + started.landlord_cards
        assert len(everything) == 54
        assert set(everything) == set(create_deck())
        assert _total_cards(started) == 54

    def test_start_twice_raises(self, started):
        before = [list(p.hand) for p in started.players]
        with pytest.raises(GameAlreadyStartedError):
            started.start()
        assert started.state == GameState.BIDDING
        assert [p.hand for p in started.players] == before

    def test_seeded_games_are_identical(self):
        a = Game(rng=random.Random(5))
        b = Game(rng=random.Random(5))
        a.start()
        b.start()
        assert a.current_player.id == b.current_player.id
        assert [p.hand for p in a.players] == [p.hand for p in b.players]

    def test_starting_seat_varies(self):
        seats = set()
        rng = random.Random(9)
        for _ in range(30):
            g = Game(rng=rng)
            g.start()
            seats.add(g.current_player.id)
        assert seats == {0, 1, 2}


# ============================================================
#  叫地主
# ============================================================

class TestBid:
    """叫地主阶段"""

    def test_bid_before_start_fails(self, game):
        assert game.bid(0, True) is False
        assert game.state == GameState.WAITING

    def test_bid_wrong_player_fails(self, started):
        other = _seat(started, 1)
        assert started.bid(other.id, True) is False
        assert started.bidding_count == 0
        assert other.role == Role.FARMER
        assert started.state == GameState.BIDDING

    def test_accept(self, started):
        bidder = started.current_player
        assert started.bid(bidder.id, True) is True
        assert bidder.role == Role.LANDLORD
        assert bidder.hand_size == 20
        assert started.state == GameState.PLAYING
        assert all(p.role == Role.FARMER for p in started.players if p is not bidder)
        assert _active(started) is bidder

    def test_accept_keeps_card_total(self, started):
        started.bid(started.current_player.id, True)
        assert sum(p.hand_size for p in started.players) == 54

    def test_decline_moves_to_next_seat(self, started):
        first = started.current_player
        second = _seat(started, 1)
        assert started.bid(first.id, False) is True
        assert first.is_active is False
        assert _active(started) is second
        assert started.state == GameState.BIDDING
        assert started.bidding_count == 1

    def test_third_player_can_accept(self, started):
        third = _seat(started, 2)
        started.bid(started.current_player.id, False)
        started.bid(started.current_player.id, False)
        assert started.current_player is third
        started.bid(third.id, True)
        assert third.role == Role.LANDLORD
        assert started.state == GameState.PLAYING

    def test_everyone_declines_redeals(self, started):
        events = []
        started.on_event(events.append)
        old_hands = [list(p.hand) for p in started.players]
        for _ in range(3):
            assert started.bid(started.current_player.id, False) is True

        assert started.state == GameState.BIDDING
        assert started.bidding_count == 0
        assert all(p.hand_size == 17 for p in started.players)
        assert all(p.role == Role.FARMER for p in started.players)
        _active(started)
        assert [p.hand for p in started.players] != old_hands
        assert "redeal" in [e.action for e in events]

    def test_bid_during_play_fails(self, playing):
        assert playing.bid(playing.current_player.id, True) is False
        assert playing.state == GameState.PLAYING


# ============================================================
#  出牌
# ============================================================

class TestPlay:
    """出牌阶段"""

    def test_play_before_playing_phase(self, started):
        assert started.play(started.current_player.id, [started.current_player.hand[0]]) \
            == PlayResult.GAME_NOT_STARTED

    def test_not_your_turn(self, playing):
        other = _seat(playing, 1)
        assert playing.play(other.id, []) == PlayResult.NOT_YOUR_TURN
        assert playing.play(other.id, [other.hand[0]]) == PlayResult.NOT_YOUR_TURN
        assert playing.pass_(other.id) == PlayResult.NOT_YOUR_TURN

    def test_lead_single_moves_turn(self, playing):
        landlord, next_player = playing.current_player, _seat(playing, 1)
        card = landlord.hand[0]
        assert playing.play(landlord.id, [card]) == PlayResult.SUCCESS
        assert landlord.hand_size == 19
        assert landlord.is_active is False
        assert _active(playing) is next_player
        assert playing.last_played_combo.cards == [card]
        assert playing.last_played_by is landlord

    def test_invalid_combo(self, playing):
        _set_hands(playing, [_c(Rank.THREE), _c(Rank.FIVE), _c(Rank.NINE)], [_c(Rank.FOUR)], [_c(Rank.SIX)])
        landlord = playing.current_player
        result = playing.play(landlord.id, [_c(Rank.THREE), _c(Rank.FIVE)])
        assert result == PlayResult.INVALID_COMBO
        assert landlord.hand_size == 3
        assert playing.current_player is landlord
        assert playing.last_played_by is None

    def test_cannot_beat(self, playing):
        _set_hands(playing, [_c(Rank.FIVE), _c(Rank.NINE)], [_c(Rank.FOUR), _c(Rank.KING)], [_c(Rank.SIX)])
        landlord, farmer = playing.current_player, _seat(playing, 1)
        playing.play(landlord.id, [_c(Rank.FIVE)])
        assert playing.play(farmer.id, [_c(Rank.FOUR)]) == PlayResult.CANNOT_BEAT
        assert farmer.hand_size == 2
        assert playing.current_player is farmer
        assert playing.last_played_by is landlord

    def test_different_shape_cannot_beat(self, playing):
        _set_hands(
            playing,
            [_c(Rank.FIVE), _c(Rank.NINE)],
            [_c(Rank.KING, Suit.HEART), _c(Rank.KING, Suit.CLUB), _c(Rank.THREE)],
            [_c(Rank.SIX)],
        )
        landlord, farmer = playing.current_player, _seat(playing, 1)
        playing.play(landlord.id, [_c(Rank.FIVE)])
        kings = [_c(Rank.KING, Suit.HEART), _c(Rank.KING, Suit.CLUB)]
        assert playing.play(farmer.id, kings) == PlayResult.CANNOT_BEAT

    def test_bomb_beats_single(self, playing):
        bomb = [_c(Rank.FOUR, s) for s in (Suit.HEART, Suit.DIAMOND, Suit.CLUB, Suit.SPADE)]
        _set_hands(playing, [_c(Rank.ACE), _c(Rank.NINE)], bomb + [_c(Rank.SIX)], [_c(Rank.SEVEN)])
        landlord, farmer = playing.current_player, _seat(playing, 1)
        playing.play(landlord.id, [_c(Rank.ACE)])
        assert playing.play(farmer.id, bomb) == PlayResult.SUCCESS
        assert playing.last_played_combo.type == ComboType.BOMB

    def test_card_not_in_hand_raises_without_change(self, playing):
        _set_hands(playing, [_c(Rank.FIVE), _c(Rank.NINE)], [_c(Rank.FOUR)], [_c(Rank.SIX)])
        landlord = playing.current_player
        with pytest.raises(CardNotInHandError):
            playing.play(landlord.id, [_c(Rank.ACE)])
        assert landlord.hand_size == 2
        assert playing.current_player is landlord
        assert playing.last_played_by is None

    def test_empty_play_is_pass(self, playing):
        _set_hands(playing, [_c(Rank.FIVE), _c(Rank.NINE)], [_c(Rank.FOUR)], [_c(Rank.SIX)])
        landlord, farmer, third = (_seat(playing, k) for k in range(3))
        playing.play(landlord.id, [_c(Rank.FIVE)])
        assert playing.play(farmer.id, []) == PlayResult.SUCCESS
        assert playing.pass_count == 1
        assert _active(playing) is third

    def test_empty_play_on_fresh_lead_rejected(self, playing):
        landlord = playing.current_player
        assert playing.play(landlord.id, []) == PlayResult.INVALID_COMBO
        assert playing.current_player is landlord


# ============================================================
#  不出与一轮结束
# ============================================================

class TestPass:
    """不出"""

    def _lead(self, game):
        _set_hands(game, [_c(Rank.FIVE), _c(Rank.NINE)], [_c(Rank.FOUR), _c(Rank.JACK)], [_c(Rank.SIX), _c(Rank.THREE)])
        landlord = game.current_player
        game.play(landlord.id, [_c(Rank.FIVE)])
        return landlord

    def test_pass_without_standing_hand(self, playing):
        assert playing.pass_(playing.current_player.id) == PlayResult.INVALID_COMBO

    def test_pass_before_playing_phase(self, started):
        assert started.pass_(started.current_player.id) == PlayResult.GAME_NOT_STARTED

    def test_two_passes_return_lead(self, playing):
        landlord = self._lead(playing)
        assert playing.pass_(playing.current_player.id) == PlayResult.SUCCESS
        assert playing.pass_(playing.current_player.id) == PlayResult.SUCCESS

        assert _active(playing) is landlord
        assert playing.last_played_combo.type == ComboType.PASS
        assert playing.last_played_by is None
        assert playing.pass_count == 0

    def test_leader_cannot_pass_own_lead(self, playing):
        landlord = self._lead(playing)
        playing.pass_(playing.current_player.id)
        playing.pass_(playing.current_player.id)
        assert playing.pass_(landlord.id) == PlayResult.INVALID_COMBO
        assert playing.current_player is landlord

    def test_leader_plays_freely_after_trick(self, playing):
        landlord = self._lead(playing)
        playing.pass_(playing.current_player.id)
        playing.pass_(playing.current_player.id)
        # 新一轮不需要压过之前的5
        landlord.hand.append(_c(Rank.THREE, Suit.HEART))
        assert playing.play(landlord.id, [_c(Rank.THREE, Suit.HEART)]) == PlayResult.SUCCESS

    def test_beat_resets_pass_count(self, playing):
        self._lead(playing)
        playing.pass_(playing.current_player.id)
        third = playing.current_player
        assert playing.play(third.id, [_c(Rank.SIX)]) == PlayResult.SUCCESS
        assert playing.pass_count == 0
        assert playing.last_played_by is third


# ============================================================
#  结算
# ============================================================

class TestGameOver:
    """出完牌结束"""

    def test_landlord_wins(self, playing):
        _set_hands(playing, [_c(Rank.THREE)], [_c(Rank.FOUR)], [_c(Rank.FIVE)])
        landlord = playing.current_player
        assert playing.play(landlord.id, [_c(Rank.THREE)]) == PlayResult.SUCCESS
        assert playing.state == GameState.GAME_OVER
        assert landlord.is_winner is True
        assert not any(p.is_winner for p in playing.players if p is not landlord)
        assert not any(p.is_active for p in playing.players)

    def test_farmers_win(self, playing):
        _set_hands(playing, [_c(Rank.THREE), _c(Rank.KING)], [_c(Rank.FOUR)], [_c(Rank.FIVE)])
        landlord, farmer = playing.current_player, _seat(playing, 1)
        playing.play(landlord.id, [_c(Rank.THREE)])
        assert playing.play(farmer.id, [_c(Rank.FOUR)]) == PlayResult.SUCCESS
        assert playing.state == GameState.GAME_OVER
        assert landlord.is_winner is False
        assert all(p.is_winner for p in playing.players if p.role == Role.FARMER)

    def test_no_play_after_game_over(self, playing):
        _set_hands(playing, [_c(Rank.THREE)], [_c(Rank.FOUR)], [_c(Rank.FIVE)])
        landlord = playing.current_player
        playing.play(landlord.id, [_c(Rank.THREE)])
        for p in playing.players:
            assert playing.play(p.id, []) == PlayResult.GAME_NOT_STARTED
            assert playing.bid(p.id, True) is False

    def test_restart_after_game_over(self, playing):
        _set_hands(playing, [_c(Rank.THREE)], [_c(Rank.FOUR)], [_c(Rank.FIVE)])
        playing.play(playing.current_player.id, [_c(Rank.THREE)])
        playing.restart()
        assert playing.state == GameState.BIDDING
        assert not any(p.is_winner for p in playing.players)
        assert all(p.role == Role.FARMER for p in playing.players)
        assert _total_cards(playing) == 54

    def test_restart_mid_game(self, playing):
        playing.restart()
        assert playing.state == GameState.BIDDING
        assert all(p.hand_size == 17 for p in playing.players)
        _active(playing)


# ============================================================
#  事件、快照与并发
# ============================================================

class TestEventsAndSnapshot:
    def test_events_delivered(self, game):
        events = []
        game.on_event(events.append)
        game.start()
        game.bid(game.current_player.id, True)
        assert [e.action for e in events] == ["deal", "bid"]

    def test_listener_may_issue_commands(self, game):
        """回调在锁外执行，可以直接继续操作"""
        def auto_accept(event):
            if event.action == "deal":
                game.bid(game.current_player.id, True)

        game.on_event(auto_accept)
        game.start()
        assert game.state == GameState.PLAYING

    def test_listener_added_during_dispatch_waits_for_next_event(self, game):
        """回调里新注册的监听器从下一个事件开始生效"""
        late = []

        def register_late(event):
            if event.action == "deal" and not late:
                late.append(None)
                game.on_event(late.append)

        game.on_event(register_late)
        game.start()
        assert late == [None]
        game.bid(game.current_player.id, True)
        assert [e.action for e in late[1:]] == ["bid"]

    def test_snapshot(self, playing):
        snap = playing.snapshot()
        assert snap.state == GameState.PLAYING
        assert snap.current_player_id == playing.current_player.id
        assert len(snap.players) == 3
        assert len(snap.landlord_cards) == 3
        assert snap.last_combo is None
        with pytest.raises(FrozenInstanceError):
            snap.state = GameState.WAITING

    def test_snapshot_waiting_has_no_current_player(self, game):
        assert game.snapshot().current_player_id is None

    def test_snapshot_is_detached(self, playing):
        snap = playing.snapshot()
        landlord = playing.current_player
        playing.play(landlord.id, [landlord.hand[0]])
        assert len(next(p for p in snap.players if p.id == landlord.id).cards) == 20

    def test_concurrent_bids_serialise(self, started):
        bidder = started.current_player.id
        results = []

        def worker():
            results.append(started.bid(bidder, False))

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert results.count(True) == 1
        assert started.bidding_count == 1
