"""终端渲染器 - 在终端中展示斗地主对局快照与事件"""

import sys
from typing import List, Optional, Sequence, TextIO

from doudizhu.engine.card import Card, Rank, Suit
from doudizhu.engine.hand_type import ComboType, CardCombo
from doudizhu.game.player import Role
from doudizhu.game.game_state import GameEvent, GameSnapshot, GameState, PlayerView


# 颜色常量 (ANSI)
RED = "\033[91m"
GREEN = "\033[92m"
YELLOW = "\033[93m"
MAGENTA = "\033[95m"
CYAN = "\033[96m"
BOLD = "\033[1m"
DIM = "\033[2m"
RESET = "\033[0m"

# 角色颜色映射
ROLE_COLOR = {
    Role.LANDLORD: RED,
    Role.FARMER: GREEN,
}

ROLE_NAME = {
    Role.LANDLORD: "地主",
    Role.FARMER: "农民",
}

# 牌型中文名
COMBO_TYPE_NAME = {
    ComboType.PASS: "不出",
    ComboType.SINGLE: "单张",
    ComboType.PAIR: "对子",
    ComboType.TRIO: "三张",
    ComboType.TRIO_WITH_SINGLE: "三带一",
    ComboType.TRIO_WITH_PAIR: "三带二",
    ComboType.STRAIGHT: "顺子",
    ComboType.STRAIGHT_PAIR: "连对",
    ComboType.AIRPLANE: "飞机",
    ComboType.AIRPLANE_WITH_SINGLE: "飞机带翅膀(单)",
    ComboType.AIRPLANE_WITH_PAIR: "飞机带翅膀(对)",
    ComboType.FOUR_WITH_TWO_SINGLE: "四带二(单)",
    ComboType.FOUR_WITH_TWO_PAIR: "四带二(对)",
    ComboType.BOMB: "炸弹 💣",
    ComboType.ROCKET: "火箭 🚀",
    ComboType.INVALID: "无效牌型",
}


def combo_type_display(combo: Optional[CardCombo]) -> str:
    """牌型的中文名；没有牌时为空串"""
    if combo is None:
        return ""
    return COMBO_TYPE_NAME.get(combo.type, combo.type.value)


class TerminalRenderer:
    """终端渲染器"""

    def __init__(self, out: Optional[TextIO] = None, color: bool = True):
        self.out = out or sys.stdout
        self.color = color

    def _paint(self, text: str, *styles: str) -> str:
        if not self.color or not styles:
            return text
        return f"{''.join(styles)}{text}{RESET}"

    def _print(self, text: str = "") -> None:
        print(text, file=self.out)

    # ============================================================
    #  牌面渲染
    # ============================================================

    def format_cards(self, cards: Sequence[Card], numbered: bool = False) -> str:
        """将牌列表格式化为（彩色）字符串，numbered 时带序号"""
        parts = []
        for i, c in enumerate(cards):
            display = c.display
            if c.suit in (Suit.HEART, Suit.DIAMOND):
                display = self._paint(display, RED)
            elif c.suit == Suit.JOKER:
                if c.rank == Rank.RED_JOKER:
                    display = self._paint(display, RED, BOLD)
                else:
                    display = self._paint(display, CYAN)
            parts.append(f"{i}:{display}" if numbered else display)
        return " ".join(parts)

    def format_player_name(self, player: PlayerView, show_role: bool = True) -> str:
        """格式化玩家名（带角色颜色）"""
        tag = ""
        if show_role:
            tag = " [地主👑]" if player.role == Role.LANDLORD else " [农民🌾]"
        return self._paint(f"{player.name}{tag}", ROLE_COLOR.get(player.role, DIM), BOLD)

    # ============================================================
    #  分隔线与标题
    # ============================================================

    @staticmethod
    def separator(char: str = "─", width: int = 60) -> str:
        return char * width

    def print_header(self, title: str) -> None:
        """打印带框的标题"""
        self._print()
        self._print(self._paint("═" * 60, YELLOW, BOLD))
        self._print(self._paint(f"  {title}", YELLOW, BOLD))
        self._print(self._paint("═" * 60, YELLOW, BOLD))

    # ============================================================
    #  快照展示
    # ============================================================

    def show_table(self, snap: GameSnapshot, viewer_id: Optional[int] = None) -> None:
        """
        展示整张牌桌。
        viewer_id 给定时只亮出该玩家的手牌，其余玩家只显示张数。
        """
        bidding = snap.state == GameState.BIDDING
        self._print(self.separator())
        for p in snap.players:
            marker = "▶ " if p.is_active else "  "
            name = self.format_player_name(p, show_role=not bidding)
            if viewer_id is None or viewer_id == p.id:
                cards = self.format_cards(p.cards, numbered=viewer_id == p.id)
                self._print(f"{marker}{name} ({len(p.cards)}张): {cards}")
            else:
                self._print(f"{marker}{name} ({len(p.cards)}张)")

        if snap.landlord_cards and not bidding:
            self._print(self._paint(f"  底牌: {self.format_cards(snap.landlord_cards)}", MAGENTA))

        if snap.last_combo is not None:
            owner = next(p for p in snap.players if p.id == snap.last_played_by)
            self._print(f"  桌面: {owner.name} 出 [{combo_type_display(snap.last_combo)}] "
                        f"{self.format_cards(snap.last_combo.cards)}")
        self._print(self.separator())

    def show_result(self, snap: GameSnapshot) -> None:
        """展示游戏结果"""
        self.print_header("🏆 游戏结束")
        landlord_won = any(p.is_winner and p.role == Role.LANDLORD for p in snap.players)
        self._print(f"  {'地主' if landlord_won else '农民'}方获胜")
        for p in snap.players:
            result = "胜" if p.is_winner else "负"
            self._print(f"  {p.name:<10} {ROLE_NAME[p.role]:<6} {result}")

    # ============================================================
    #  事件回调（注册到 Game.on_event）
    # ============================================================

    def describe_event(self, event: GameEvent, players: List[PlayerView]) -> str:
        """把一条事件描述成一行文字"""
        names = {p.id: p.name for p in players}
        name = names.get(event.player_id, "")
        if event.action == "deal":
            return f"发牌完成，{name} 先叫地主"
        if event.action == "bid":
            return f"{name}: {'叫地主！' if event.data else '不叫'}"
        if event.action == "redeal":
            return "没有人叫地主，重新发牌"
        if event.action == "play":
            combo: CardCombo = event.data
            return f"{name} 出牌 [{combo_type_display(combo)}]: {self.format_cards(combo.cards)}"
        if event.action == "pass":
            return f"{name}: 不出"
        if event.action == "trick_reset":
            return f"其他玩家都不出，{name} 继续出牌"
        if event.action == "game_over":
            return f"{name} 出完了所有牌！"
        return event.action

    def make_event_callback(self, snapshot_fn):
        """创建事件回调函数，供 Game.on_event() 使用"""
        renderer = self

        def callback(event: GameEvent) -> None:
            snap = snapshot_fn()
            renderer._print(f"  {renderer.describe_event(event, list(snap.players))}")

        return callback


def parse_selection(text: str, hand: Sequence[Card]) -> List[Card]:
    """
    把 "0 3 4" 这样的序号输入转换为手牌中的牌。
    空输入返回空列表（不出）；序号越界或重复时抛出 ValueError。
    """
    tokens = text.replace(",", " ").split()
    indices = [int(t) for t in tokens]
    if len(set(indices)) != len(indices):
        raise ValueError("序号重复")
    for i in indices:
        if not 0 <= i < len(hand):
            raise ValueError(f"序号越界: {i}")
    return [hand[i] for i in indices]
