"""HTTP/WebSocket 服务 - 把一局 Game 的快照与指令暴露给前端"""

import json
import logging
from typing import Any, Dict, List, Optional, Set

from fastapi import FastAPI, HTTPException, Request, WebSocket, WebSocketDisconnect
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from doudizhu.config import Settings, load_settings
from doudizhu.engine.card import Card, Rank, Suit
from doudizhu.engine.hand_type import CardCombo
from doudizhu.game.controller import Game
from doudizhu.game.errors import CardNotInHandError, GameAlreadyStartedError
from doudizhu.game.game_state import GameEvent, GameSnapshot, PlayerView, PlayResult
from doudizhu.ui.renderer import combo_type_display
from doudizhu.web.schemas import (
    BidRequest, BidResponse, CardSchema, GameStateSchema, PassRequest,
    PlayRequest, PlayResponse,
)

logger = logging.getLogger(__name__)


# ============================================================
#  序列化工具
# ============================================================

def card_to_dict(c: Card) -> dict:
    """将 Card 序列化为前端可用的 dict"""
    return {
        "rank": c.value,
        "suit": c.suit.value,
        "display": c.display,
    }


def card_from_schema(schema: CardSchema) -> Card:
    """从请求体还原一张牌；非法组合抛出 ValueError"""
    return Card(rank=Rank(schema.rank), suit=Suit(schema.suit))


def combo_to_dict(combo: CardCombo) -> dict:
    return {
        "type": combo.type.value,
        "type_name": combo_type_display(combo),
        "main_value": combo.main_value,
        "cards": [card_to_dict(c) for c in combo.cards],
    }


def player_to_dict(p: PlayerView) -> dict:
    """将玩家视图序列化"""
    return {
        "id": p.id,
        "name": p.name,
        "role": p.role.value,
        "hand_size": len(p.cards),
        "hand": [card_to_dict(c) for c in p.cards],
        "is_active": p.is_active,
        "is_winner": p.is_winner,
    }


def snapshot_to_dict(snap: GameSnapshot) -> dict:
    """将对局快照序列化"""
    return {
        "state": snap.state.value,
        "players": [player_to_dict(p) for p in snap.players],
        "current_player_id": snap.current_player_id,
        "landlord_cards": [card_to_dict(c) for c in snap.landlord_cards],
        "last_combo": combo_to_dict(snap.last_combo) if snap.last_combo else None,
        "last_played_by": snap.last_played_by,
    }


# ============================================================
#  FastAPI 应用
# ============================================================

def create_app(game: Optional[Game] = None, settings: Optional[Settings] = None) -> FastAPI:
    """
    创建应用。game 不传时按配置新建一局（等待开始）。
    """
    settings = settings or load_settings()
    game = game or Game(player_names=settings.player_names, rng=settings.make_rng())

    app = FastAPI(title="斗地主", version="0.1.0")
    app.state.game = game

    # WebSocket 连接池
    connections: Set[WebSocket] = set()

    async def broadcast(msg: dict) -> None:
        """向所有连接的客户端广播消息"""
        data = json.dumps(msg, ensure_ascii=False)
        dead = set()
        for ws in connections:
            try:
                await ws.send_text(data)
            except (WebSocketDisconnect, RuntimeError) as e:
                logger.warning("推送失败，断开连接: %s", e)
                dead.add(ws)
        connections.difference_update(dead)

    async def push_state(events: List[GameEvent]) -> Dict[str, Any]:
        state = snapshot_to_dict(game.snapshot())
        await broadcast({
            "type": "state",
            "events": [{"action": e.action, "player_id": e.player_id} for e in events],
            "game": state,
        })
        return state

    # 收集每条指令产生的事件，随快照一起推送
    recorded: List[GameEvent] = []
    game.on_event(recorded.append)

    def drain() -> List[GameEvent]:
        events = list(recorded)
        recorded.clear()
        return events

    @app.exception_handler(GameAlreadyStartedError)
    async def already_started_handler(request: Request, exc: GameAlreadyStartedError):
        return JSONResponse(status_code=409, content={"detail": str(exc)})

    @app.exception_handler(CardNotInHandError)
    async def not_in_hand_handler(request: Request, exc: CardNotInHandError):
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    @app.get("/api/state", response_model=GameStateSchema)
    async def get_state():
        """当前对局快照"""
        return snapshot_to_dict(game.snapshot())

    @app.post("/api/start", response_model=GameStateSchema)
    async def start():
        game.start()
        return await push_state(drain())

    @app.post("/api/restart", response_model=GameStateSchema)
    async def restart():
        game.restart()
        return await push_state(drain())

    @app.post("/api/bid", response_model=BidResponse)
    async def bid(req: BidRequest):
        success = game.bid(req.player_id, req.accept)
        if not success:
            return {"success": False, "game": snapshot_to_dict(game.snapshot())}
        return {"success": True, "game": await push_state(drain())}

    @app.post("/api/play", response_model=PlayResponse)
    async def play(req: PlayRequest):
        try:
            cards = [card_from_schema(c) for c in req.cards]
        except ValueError as e:
            raise HTTPException(status_code=400, detail=f"非法的牌: {e}")
        result = game.play(req.player_id, cards)
        return {"result": result.value, "game": await _respond(result)}

    @app.post("/api/pass", response_model=PlayResponse)
    async def pass_turn(req: PassRequest):
        result = game.pass_(req.player_id)
        return {"result": result.value, "game": await _respond(result)}

    async def _respond(result: PlayResult) -> Dict[str, Any]:
        # 失败的指令不改变状态，不用广播
        if result != PlayResult.SUCCESS:
            return snapshot_to_dict(game.snapshot())
        return await push_state(drain())

    async def dispatch(msg: dict) -> Optional[dict]:
        """处理 WebSocket 上的指令；成功的指令以广播作答，失败的单独回复"""
        action = msg.get("action")
        try:
            if action == "start":
                game.start()
            elif action == "restart":
                game.restart()
            elif action == "bid":
                req = BidRequest(**msg)
                if not game.bid(req.player_id, req.accept):
                    return {"type": "error", "detail": "现在不能叫地主"}
            elif action == "play":
                req = PlayRequest(**msg)
                cards = [card_from_schema(c) for c in req.cards]
                result = game.play(req.player_id, cards)
                if result != PlayResult.SUCCESS:
                    return {"type": "error", "detail": result.value}
            elif action == "pass":
                req = PassRequest(**msg)
                result = game.pass_(req.player_id)
                if result != PlayResult.SUCCESS:
                    return {"type": "error", "detail": result.value}
            else:
                return {"type": "error", "detail": f"未知指令: {action}"}
        except ValidationError as e:
            return {"type": "error", "detail": f"指令格式错误: {e}"}
        except (GameAlreadyStartedError, ValueError) as e:
            return {"type": "error", "detail": str(e)}
        await push_state(drain())
        return None

    @app.websocket("/ws")
    async def websocket_endpoint(ws: WebSocket):
        """WebSocket 端点：连接后先推送一次快照，之后接收指令并广播新快照"""
        await ws.accept()
        connections.add(ws)
        try:
            await ws.send_text(json.dumps(
                {"type": "state", "events": [], "game": snapshot_to_dict(game.snapshot())},
                ensure_ascii=False,
            ))
            while True:
                text = await ws.receive_text()
                try:
                    msg = json.loads(text)
                except ValueError:
                    reply = {"type": "error", "detail": "消息不是合法的 JSON"}
                else:
                    if isinstance(msg, dict):
                        reply = await dispatch(msg)
                    else:
                        reply = {"type": "error", "detail": "消息必须是 JSON 对象"}
                if reply is not None:
                    await ws.send_text(json.dumps(reply, ensure_ascii=False))
        except WebSocketDisconnect:
            pass
        finally:
            connections.discard(ws)

    return app
