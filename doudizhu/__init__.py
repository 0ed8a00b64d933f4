"""斗地主规则引擎：牌、牌组、牌型识别与三人对局状态机"""

__version__ = "0.1.0"
