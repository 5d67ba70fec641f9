# =============================================================================
# 委员会成员名册与人设点评。 / Council roster & persona comments.
# =============================================================================

from .roster import DEFAULT_COMMENT, MEMBER_ROSTER, PERSONA_COMMENTS, comment_for, find_member

__all__ = [
    "DEFAULT_COMMENT",
    "MEMBER_ROSTER",
    "PERSONA_COMMENTS",
    "comment_for",
    "find_member",
]
