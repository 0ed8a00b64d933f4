# 牌局规则引擎模块
from .card import Card, Rank, Suit, create_deck, sort_cards
from .deck import Deck
from .hand_type import ComboType, CardCombo
from .hand_detector import classify, can_beat
