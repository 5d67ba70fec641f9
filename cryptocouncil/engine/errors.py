# errors.py
# =============================================================================
# 委员会引擎错误定义。
#
# 未知阶段不抛错（降级为零分结果），因此这里只有三类错误：
# 找不到会话、非法状态转换、重复 id。
# =============================================================================

from __future__ import annotations


# -----------------------------------------------------------------------------
# 错误码
# -----------------------------------------------------------------------------
COUNCIL_NOT_FOUND = "COUNCIL_NOT_FOUND"
INVALID_TRANSITION = "INVALID_TRANSITION"
DUPLICATE_COUNCIL = "DUPLICATE_COUNCIL"


class CouncilError(Exception):
    """委员会引擎错误 — 携带错误码与诊断信息。"""

    def __init__(self, code: str, message: str) -> None:
        self.code = code
        self.message = message
        super().__init__(f"[{code}] {message}")


class CouncilNotFoundError(CouncilError):
    def __init__(self, council_id: str) -> None:
        self.council_id = council_id
        super().__init__(COUNCIL_NOT_FOUND, f"Council '{council_id}' not found")


class InvalidTransitionError(CouncilError):
    def __init__(self, council_id: str, status: str, operation: str) -> None:
        self.council_id = council_id
        self.status = status
        self.operation = operation
        super().__init__(
            INVALID_TRANSITION,
            f"Cannot {operation} council '{council_id}' in status '{status}'",
        )


class DuplicateCouncilError(CouncilError):
    def __init__(self, council_id: str) -> None:
        self.council_id = council_id
        super().__init__(DUPLICATE_COUNCIL, f"Council '{council_id}' already exists")
