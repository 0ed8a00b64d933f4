"""斗地主 - 主入口（终端热座对局 / Web 服务）"""

import sys
import argparse
import logging
import random

import uvicorn

from doudizhu.config import Settings, load_settings
from doudizhu.game.controller import Game
from doudizhu.game.errors import CardNotInHandError
from doudizhu.game.game_state import GameState, PlayResult
from doudizhu.ui.renderer import TerminalRenderer, parse_selection
from doudizhu.web.server import create_app


# 出牌失败的提示
RESULT_MESSAGE = {
    PlayResult.INVALID_COMBO: "无效牌型（或当前不能不出）",
    PlayResult.CANNOT_BEAT: "压不过上家",
    PlayResult.NOT_YOUR_TURN: "还没轮到你",
    PlayResult.GAME_NOT_STARTED: "不在出牌阶段",
}


def run_one_game(settings: Settings, rng: random.Random, read=input) -> None:
    """三人轮流在同一终端上操作，打完一局"""
    renderer = TerminalRenderer()
    game = Game(player_names=settings.player_names, rng=rng)
    game.on_event(renderer.make_event_callback(game.snapshot))

    renderer.print_header("🀄 斗地主对局开始")
    game.start()

    while game.state != GameState.GAME_OVER:
        player = game.current_player
        renderer.show_table(game.snapshot(), viewer_id=player.id)

        if game.state == GameState.BIDDING:
            answer = read(f"{player.name} 是否叫地主? [y/n] ").strip().lower()
            game.bid(player.id, answer in ("y", "yes", "1"))
            continue

        text = read(f"{player.name} 出牌（输入序号，空格分隔；直接回车不出）: ")
        try:
            cards = parse_selection(text, player.hand)
        except ValueError as e:
            print(f"  输入有误: {e}")
            continue

        try:
            result = game.play(player.id, cards)
        except CardNotInHandError as e:
            print(f"  {e}")
            continue
        if result != PlayResult.SUCCESS:
            print(f"  {RESULT_MESSAGE[result]}")

    renderer.show_result(game.snapshot())


def serve(settings: Settings) -> None:
    """启动 Web 服务"""
    uvicorn.run(create_app(settings=settings), host=settings.host, port=settings.port)


def main(argv=None):
    """命令行入口"""
    settings = load_settings()

    parser = argparse.ArgumentParser(description="斗地主")
    parser.add_argument("--seed", type=int, default=settings.seed, help="随机种子 (默认随机)")
    parser.add_argument("--log-level", default=settings.log_level, help="日志级别 (默认INFO)")
    sub = parser.add_subparsers(dest="command")

    play = sub.add_parser("play", help="终端热座对局")
    play.add_argument("--rounds", type=int, default=1, help="对局数 (默认1)")

    srv = sub.add_parser("serve", help="启动 Web 服务")
    srv.add_argument("--host", default=settings.host, help="监听地址")
    srv.add_argument("--port", type=int, default=settings.port, help="监听端口")

    args = parser.parse_args(argv)

    settings.seed = args.seed
    settings.log_level = args.log_level.upper()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    if args.command == "serve":
        settings.host = args.host
        settings.port = args.port
        serve(settings)
        return

    rounds = getattr(args, "rounds", 1)
    rng = settings.make_rng()
    for i in range(rounds):
        if rounds > 1:
            print(f"\n{'=' * 60}")
            print(f"  第 {i + 1}/{rounds} 局")
            print(f"{'=' * 60}")
        run_one_game(settings, rng)


if __name__ == "__main__":
    sys.exit(main())
