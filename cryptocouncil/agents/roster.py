"""委员会成员名册。 / Council member roster.

名册在进程启动时定义一次，之后不可修改。每个 Council 从中抽取 3 名成员。
/ Defined once at process start and never modified. Each council draws
its panel of 3 from here.
"""

from typing import Dict, Optional, Tuple

from cryptocouncil.primitives.models import Member

MEMBER_ROSTER: Tuple[Member, ...] = (
    Member(
        name="CryptoSage",
        expertise="Technical Analysis",
        catchphrase="The charts never lie, but sometimes they do a little trolling",
    ),
    Member(
        name="TokenWhisperer",
        expertise="Tokenomics",
        catchphrase="If the tokenomics are mid, you gonna stay poor kid",
    ),
    Member(
        name="BlockchainOracle",
        expertise="On-Chain Analysis",
        catchphrase="The blockchain sees all, especially your poor life choices",
    ),
    Member(
        name="DeFiGuru",
        expertise="DeFi Mechanics",
        catchphrase="Touch grass? I only touch smart contracts",
    ),
    Member(
        name="ChartMaster",
        expertise="Market Psychology",
        catchphrase="When there's blood in the streets... buy more crypto",
    ),
)

DEFAULT_COMMENT = "Looking bullish!"

# 人设固定点评（按成员名查找） / Fixed persona comments, keyed by member name
PERSONA_COMMENTS: Dict[str, str] = {
    "CryptoSage": "Support is holding and the RSI is cooking. Breakout loading.",
    "TokenWhisperer": "Supply schedule checks out, no sketchy unlocks on the horizon.",
    "BlockchainOracle": "Whales are accumulating and active wallets keep climbing.",
    "DeFiGuru": "Liquidity is deep and the yields are actually real for once.",
    "ChartMaster": "Crowd is scared, which is exactly when I get greedy.",
}


def comment_for(member_name: str) -> str:
    """返回成员的固定点评，未知成员回退到通用点评。 / Persona comment with generic fallback."""
    return PERSONA_COMMENTS.get(member_name, DEFAULT_COMMENT)


def find_member(name: str) -> Optional[Member]:
    for member in MEMBER_ROSTER:
        if member.name == name:
            return member
    return None
