"""运行配置 - 从环境变量读取玩家名、随机种子、日志级别与服务地址"""

import os
import random
from dataclasses import dataclass, field
from typing import List, Optional


@dataclass
class Settings:
    player_names: List[str] = field(default_factory=lambda: ["玩家1", "玩家2", "玩家3"])
    seed: Optional[int] = None
    log_level: str = "INFO"
    host: str = "127.0.0.1"
    port: int = 8000

    def make_rng(self) -> random.Random:
        """按种子创建随机源；没有种子时每次不同"""
        return random.Random(self.seed)


def load_settings() -> Settings:
    """从环境变量加载配置"""
    names = [
        os.getenv(f"DDZ_PLAYER{idx}_NAME", f"玩家{idx}")
        for idx in range(1, 4)
    ]
    seed = os.getenv("DDZ_SEED", "")
    return Settings(
        player_names=names,
        seed=int(seed) if seed else None,
        log_level=os.getenv("DDZ_LOG_LEVEL", "INFO").upper(),
        host=os.getenv("DDZ_HOST", "127.0.0.1"),
        port=int(os.getenv("DDZ_PORT", "8000")),
    )
