# events.py
# =============================================================================
# 委员会生命周期事件 — 供外部应用实时获取会话状态。
# =============================================================================

"""Council lifecycle events for external integration."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass
class CouncilEvent:
    """委员会生命周期中的结构化事件。

    外部应用通过注册 on_progress 回调来接收此类事件，
    实现聊天频道推送、审计日志等集成场景。

    Attributes:
        type: 事件类型。
            - "council_created": 委员会已组建
            - "council_confirmed": 委员会已确认（pending → active）
            - "stage_completed": 渐进模式完成一个阶段
            - "council_completed": 委员会完成（→ complete）
            - "council_evicted": 过期委员会被淘汰
            - "error": 发生错误
        council_id: 委员会唯一标识。
        crypto: 代币代码（如 "BTC"）。
        status: 事件发生后的委员会状态。
        timestamp: 事件产生时的单调时钟（秒）。
        detail: 事件附加数据，结构因 type 而异。
    """

    type: str
    council_id: str
    crypto: str = ""
    status: Optional[str] = None
    timestamp: float = field(default_factory=time.monotonic)
    detail: Optional[Dict[str, Any]] = None
