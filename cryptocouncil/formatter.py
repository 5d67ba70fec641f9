# formatter.py
# =============================================================================
# 裁决文本渲染 — 把结构化结果渲染为聊天频道文本。
# / Verdict rendering — turns structured results into channel text.
#
# 两种模式 / Two modes:
#   - format_report: 单段完整报告 / one consolidated report
#   - paginate_report: 按长度上限切分并编号（"1/3 ..."）/ numbered chunks
#     under a length limit, for platforms with message-size caps
#
# 成员评分与 0-100 维度分只在这里混合展示；总评一律换算到 10 分制。
# / Member and 0-100 axis scores are only mixed here; the overall rating is
# always displayed on the 10-point scale.
# =============================================================================

from __future__ import annotations

import textwrap
from typing import List

from cryptocouncil.primitives.models import (
    Council,
    Stage,
    StageSummary,
    VerdictReport,
)

DEFAULT_MAX_CHUNK_LENGTH = 280
MIN_CHUNK_LENGTH = 40
CHUNK_SEPARATOR = "\n\n---\n\n"
# "nn/nn " 编号前缀的初始预留长度 / initial room reserved for the "nn/nn " prefix
_PREFIX_RESERVE = 8


def format_assembly(council: Council) -> str:
    """委员会组建完成的提示语。 / Message announcing an assembled council."""
    handles = " @".join(council.member_names)
    return (
        f"Yo fam! Assembling council #{council.id} to rate ${council.crypto}! "
        f"Got @{handles} on deck! Reply 'confirm' to get their takes! 🚀"
    )


def report_sections(report: VerdictReport) -> List[str]:
    """报告的三个有序段落：总评、叙事、成员投票。

    / The three ordered sections: headline, narrative, member votes.
    """
    headline = (
        f"{report.crypto} Council Rating 🎯\n"
        f"Overall: {report.overall_on_ten_scale:.1f}/10\n"
        f"Risk: {report.risk_level.upper()}\n"
        f"Tech: {report.technical_score}/100 | "
        f"Fund: {report.fundamental_score}/100 | "
        f"Meme: {report.meme_potential}/100"
    )
    scale = report.rating_scale_max
    votes = "\n".join(
        f"{r.member_name}: {r.score}/{scale} \"{r.comment}\""
        for r in report.ratings
    )
    return [headline, report.narrative, f"Council Votes:\n{votes}"]


def format_report(report: VerdictReport) -> str:
    return "\n\n".join(report_sections(report))


def _split_section(text: str, width: int) -> List[str]:
    """按行贪心打包，超长的行按词切分。 / Greedy line packing; long lines wrap on words."""
    lines: List[str] = []
    for line in text.split("\n"):
        if len(line) <= width:
            lines.append(line)
        else:
            lines.extend(textwrap.wrap(line, width=width))

    pieces: List[str] = []
    current = ""
    for line in lines:
        candidate = f"{current}\n{line}" if current else line
        if current and len(candidate) > width:
            pieces.append(current)
            current = line
        else:
            current = candidate
    if current:
        pieces.append(current)
    return pieces


def paginate_report(
    report: VerdictReport, max_chunk_length: int = DEFAULT_MAX_CHUNK_LENGTH
) -> List[str]:
    """切分为编号分片，每片（含编号）不超过 max_chunk_length。

    / Numbered chunks, each within max_chunk_length including the prefix.

    Raises:
        ValueError: max_chunk_length 小于 MIN_CHUNK_LENGTH。
    """
    if max_chunk_length < MIN_CHUNK_LENGTH:
        raise ValueError(
            f"max_chunk_length 过小: {max_chunk_length}（至少 {MIN_CHUNK_LENGTH}）"
        )
    reserve = _PREFIX_RESERVE
    while True:
        width = max_chunk_length - reserve
        pieces: List[str] = []
        for section in report_sections(report):
            pieces.extend(_split_section(section, width))
        total = len(pieces)
        prefix_length = len(f"{total}/{total} ")
        if prefix_length <= reserve:
            break
        # 分片数超出预留位数时加宽预留后重切 / widen the reserve and re-split
        reserve = prefix_length
    return [f"{i}/{total} {piece}" for i, piece in enumerate(pieces, start=1)]


def join_chunks(chunks: List[str]) -> str:
    return CHUNK_SEPARATOR.join(chunks)


def format_stage(crypto: str, stage: Stage, index: int, total: int) -> str:
    """渐进模式单阶段消息。index 从 1 开始。 / Per-stage progressive message (1-based index)."""
    lines = [
        f"{crypto} {stage.name} ({index}/{total}) 🔍",
        f"Score: {stage.score}/100",
        stage.analysis,
    ]
    for key, value in stage.details.items():
        lines.append(f"- {key}: {value}")
    if index < total:
        lines.append("Reply 'next' for the next stage.")
    return "\n".join(lines)


def format_summary(summary: StageSummary) -> str:
    """渐进模式结束时的汇总消息。 / Final progressive-mode summary."""
    lines = [
        f"{summary.crypto} Council Stage Review ✅",
        f"Average: {summary.average_score:.1f}/100",
    ]
    lines.extend(f"{s.name}: {s.score}/100" for s in summary.stages)
    return "\n".join(lines)
