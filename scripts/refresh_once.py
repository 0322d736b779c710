#!/usr/bin/env python
"""执行一次等待时间刷新并打印结果。

用法:
    uv run python scripts/refresh_once.py [--force-catalog] [--wipe] [--desc]
"""

import argparse
import asyncio
import sys
from pathlib import Path


def _ensure_project_root_on_path() -> None:
    """确保项目根目录在 Python 路径中，便于直接运行脚本。"""
    project_root = Path(__file__).parent.parent
    project_root_str = str(project_root)
    if project_root_str not in sys.path:
        sys.path.insert(0, project_root_str)


_ensure_project_root_on_path()


async def refresh_once(
    force_catalog: bool = False,
    wipe: bool = False,
    ascending: bool = True,
) -> int:
    """刷新一次。

    Returns:
        退出码：健康为 0，降级为 1
    """
    from loguru import logger

    from src.core.config import settings
    from src.core.infrastructure.blob_store import build_blob_store
    from src.modules.waits.infrastructure.dependencies import build_wait_board

    blob_store = build_blob_store(settings)
    try:
        board = build_wait_board(blob_store, settings, sort_ascending=ascending)
        await board.restore()

        if wipe or force_catalog:
            result = await board.refresh(include_catalog=True, wipe_caches=wipe)
        else:
            result = await board.load_catalog_and_refresh()
    finally:
        await blob_store.close()

    if result is None:
        logger.warning("Refresh skipped")
        return 1

    logger.info(
        f"Fetched {result.succeeded}/{result.total} attractions "
        f"in {result.duration_ms}ms"
    )
    for record in board.records:
        wait = "--" if record.wait_minutes is None else f"{record.wait_minutes:>3}"
        star = "*" if record.id in board.favorites else " "
        print(f"{star} {wait} min  {record.short_name:<12} {record.name}")

    print(f"Last fetch: {board.last_fetch.isoformat() if board.last_fetch else '-'}")
    if board.error_message:
        print(board.error_message)
        return 1
    return 0


def main():
    parser = argparse.ArgumentParser(description="刷新一次等待时间")
    parser.add_argument(
        "--force-catalog",
        action="store_true",
        help="强制重新检查 catalog（带 If-None-Match）",
    )
    parser.add_argument(
        "--wipe",
        action="store_true",
        help="先清空 catalog 缓存与快照",
    )
    parser.add_argument(
        "--desc",
        action="store_true",
        help="按等待时间降序输出",
    )

    args = parser.parse_args()

    sys.exit(
        asyncio.run(
            refresh_once(
                force_catalog=args.force_catalog,
                wipe=args.wipe,
                ascending=not args.desc,
            )
        )
    )


if __name__ == "__main__":
    main()
