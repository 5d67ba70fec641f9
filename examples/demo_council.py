#!/usr/bin/env python3
"""CryptoCouncil 命令行演示。 / CryptoCouncil command-line demo.

两种模式 / Two modes:
  - quick:       rate → confirm，一次性输出分片裁决 / consolidated verdict
  - progressive: rate → next ×5，逐阶段输出 / one stage per reply

用法 / Usage:
  python examples/demo_council.py quick BTC
  python examples/demo_council.py progressive SOL --seed 7
  python examples/demo_council.py chat            # 交互模式 / interactive
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

# Project root (examples/ is one level below repo root)
REPO_ROOT = Path(__file__).resolve().parent.parent
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from cryptocouncil import CouncilService  # noqa: E402
from cryptocouncil.primitives.events import CouncilEvent  # noqa: E402

_EVENT_CN = {
    "council_created": "委员会已组建",
    "council_confirmed": "委员会已确认",
    "stage_completed": "阶段完成",
    "council_completed": "委员会完成",
    "council_evicted": "过期淘汰",
    "error": "错误",
}


def setup_logging(level: int = logging.INFO) -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
    )


def print_progress(event: CouncilEvent) -> None:
    """Terminal progress callback (sync). Plug into ``CouncilService(on_progress=...)``."""
    label = _EVENT_CN.get(event.type, event.type)
    detail = f" {event.detail}" if event.detail else ""
    print(f"  · [{event.council_id or '-'}] {label}{detail}")


def _bot(text: str) -> None:
    print(f"\n🤖 {text}\n")


async def run_quick(service: CouncilService, symbol: str) -> None:
    _bot(await service.handle_message(f"rate {symbol}"))
    _bot(await service.handle_message("confirm"))


async def run_progressive(service: CouncilService, symbol: str) -> None:
    _bot(await service.handle_message(f"rate {symbol}"))
    for _ in range(5):
        _bot(await service.handle_message("next"))


async def run_chat(service: CouncilService) -> None:
    print("输入 'rate BTC' / 'confirm' / 'next'，空行退出。 / Empty line quits.")
    loop = asyncio.get_running_loop()
    while True:
        text = await loop.run_in_executor(None, input, "> ")
        if not text.strip():
            break
        _bot(await service.handle_message(text))


async def main() -> None:
    parser = argparse.ArgumentParser(description="CryptoCouncil 演示 / demo")
    parser.add_argument("mode", choices=["quick", "progressive", "chat"])
    parser.add_argument("symbol", nargs="?", default="BTC", help="代币代码（默认 BTC）")
    parser.add_argument("--config", default=None, help="council_config.yaml 路径")
    parser.add_argument("--seed", type=int, default=None, help="随机种子，便于复现")
    parser.add_argument(
        "--phase", choices=["quick", "analysis"], default=None,
        help="成员评分区间：quick 1-10 / analysis 60-99",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="输出 DEBUG 日志")
    args = parser.parse_args()

    setup_logging(logging.DEBUG if args.verbose else logging.WARNING)

    overrides = {"random_seed": args.seed, "rating_phase": args.phase}
    service = CouncilService.from_config(
        config=overrides, config_file=args.config, on_progress=print_progress,
    )

    if args.mode == "quick":
        await run_quick(service, args.symbol)
    elif args.mode == "progressive":
        await run_progressive(service, args.symbol)
    else:
        await run_chat(service)


if __name__ == "__main__":
    asyncio.run(main())
