"""聊天触发词解析。 / Chat trigger parsing.

把自由文本解析为已确定意图的 Trigger。引擎本身只接受 Trigger，不解析文本；
代币是否受支持由 CouncilService 校验。
/ Resolves free text into a Trigger with a definite intent. The engine itself
only accepts Triggers; symbol support is checked by CouncilService.
"""

import re
from dataclasses import dataclass
from typing import Iterable, Optional

from cryptocouncil.config import DEFAULT_SUPPORTED_SYMBOLS

INTENT_RATE = "rate"
INTENT_CONFIRM = "confirm"
INTENT_NEXT = "next"

_RATE_PATTERN = re.compile(r"\b(?:rate|what do you think about)\b\s*(.*)", re.IGNORECASE)
_CONFIRM_PATTERN = re.compile(r"\bconfirm\b", re.IGNORECASE)
_NEXT_PATTERN = re.compile(r"\bnext\b", re.IGNORECASE)
_COUNCIL_ID_PATTERN = re.compile(r"#([a-z0-9]{4,16})\b", re.IGNORECASE)
_CASHTAG_PATTERN = re.compile(r"\$([a-z]{2,10})\b", re.IGNORECASE)
_WORD_PATTERN = re.compile(r"\b([a-z]{3,10})\b", re.IGNORECASE)

# 跟在 "rate" 后面但不是代币的常见词 / words after "rate" that are not tickers
_STOPWORDS = {
    "the", "this", "that", "coin", "token", "crypto", "please", "pls",
    "for", "and", "out", "how", "about", "what", "you", "think",
}


@dataclass(frozen=True)
class Trigger:
    """已解析的入站触发。 / A resolved inbound trigger."""
    intent: str
    crypto_symbol: Optional[str] = None
    council_id: Optional[str] = None


def _extract_symbol(text: str, supported_symbols: Iterable[str]) -> Optional[str]:
    supported = {s.upper() for s in supported_symbols}
    cashtag = _CASHTAG_PATTERN.search(text)
    if cashtag:
        return cashtag.group(1).upper()
    words = [w.upper() for w in _WORD_PATTERN.findall(text)]
    for word in words:
        if word in supported:
            return word
    for word in words:
        if word.lower() not in _STOPWORDS:
            return word
    return None


def parse_trigger(
    text: str,
    supported_symbols: Iterable[str] = DEFAULT_SUPPORTED_SYMBOLS,
) -> Optional[Trigger]:
    """解析聊天文本；无法识别时返回 None。 / Parse chat text; None when unrecognized.

    "rate"/"what do you think about" 优先于 "confirm"，"confirm" 优先于 "next"。
    / "rate" wins over "confirm", which wins over "next".
    """
    if not text or not text.strip():
        return None

    council_match = _COUNCIL_ID_PATTERN.search(text)
    council_id = council_match.group(1).lower() if council_match else None

    rate_match = _RATE_PATTERN.search(text)
    if rate_match:
        symbol = _extract_symbol(rate_match.group(1), supported_symbols)
        if symbol:
            return Trigger(intent=INTENT_RATE, crypto_symbol=symbol)

    if _CONFIRM_PATTERN.search(text):
        return Trigger(intent=INTENT_CONFIRM, council_id=council_id)
    if _NEXT_PATTERN.search(text):
        return Trigger(intent=INTENT_NEXT, council_id=council_id)
    return None
