"""对局异常 - 只用于调用方违约的情况，普通非法操作走返回值"""


class DoudizhuError(Exception):
    """所有引擎异常的基类"""


class GameAlreadyStartedError(DoudizhuError, RuntimeError):
    """非 WAITING 状态下调用 start()"""


class CardNotInHandError(DoudizhuError, ValueError):
    """要出的牌不在玩家手中"""


class NoCardsSelectedError(DoudizhuError, ValueError):
    """没有选中任何牌"""
