#!/usr/bin/env python3
"""健康检查脚本。

用于检查系统各组件的健康状态。
可作为运维脚本或监控探针使用。

使用方式：
    # 完整健康检查
    python scripts/health_check.py

    # 只检查特定组件
    python scripts/health_check.py --component blob_store
    python scripts/health_check.py --component redis
    python scripts/health_check.py --component queues
    python scripts/health_check.py --component snapshot

    # JSON 输出
    python scripts/health_check.py --json

    # 退出码检查（用于 CI/CD）
    python scripts/health_check.py --strict
"""

import argparse
import asyncio
import json
import sys
from datetime import UTC, datetime
from pathlib import Path

# 添加项目根目录到 Python 路径
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))


async def check_blob_store() -> dict:
    """检查 blob store 后端是否可读。"""
    try:
        from src.core.config import settings
        from src.core.infrastructure.blob_store import (
            build_blob_store,
            check_blob_store_health,
        )

        store = build_blob_store(settings)
        result = await check_blob_store_health(store, settings.BLOB_STORE_BACKEND)
        if result.status.value == "ok":
            return {"status": "healthy", "backend": result.backend}
        return {"status": "unhealthy", "backend": result.backend, "error": result.error}

    except Exception as e:
        return {"status": "unhealthy", "error": str(e)}


async def check_redis() -> dict:
    """检查 Redis 连接。"""
    try:
        from src.core.infrastructure.redis.client import RedisClient

        redis_client = RedisClient()
        try:
            is_ok = await redis_client.ping()
        finally:
            await redis_client.close()

        if is_ok:
            return {"status": "healthy", "message": "Redis connection OK"}
        else:
            return {"status": "unhealthy", "error": "Redis ping failed"}

    except Exception as e:
        return {"status": "unhealthy", "error": str(e)}


async def check_queues() -> dict:
    """检查 Celery 队列积压。"""
    try:
        from src.core.infrastructure.celery.queues import Queues
        from src.core.infrastructure.redis.client import RedisClient

        redis_client = RedisClient()

        queues = {}
        total_backlog = 0

        try:
            for queue in Queues.all_queues():
                try:
                    length = await redis_client.client.llen(queue)
                    queues[queue] = {"length": length}
                    total_backlog += length
                except Exception as e:
                    queues[queue] = {"error": str(e)}
        finally:
            await redis_client.close()

        # 刷新周期任务正常情况下不会积压
        status = "healthy"
        if total_backlog > 3:
            status = "warning"
        if total_backlog > 20:
            status = "unhealthy"

        return {
            "status": status,
            "total_backlog": total_backlog,
            "queues": queues,
        }

    except Exception as e:
        return {"status": "unhealthy", "error": str(e)}


async def check_snapshot() -> dict:
    """检查最近一次快照的新鲜度与健康信号。"""
    try:
        from src.core.config import settings
        from src.core.infrastructure.blob_store import build_blob_store
        from src.modules.waits.infrastructure.snapshot_store import BlobSnapshotStore

        snapshot = await BlobSnapshotStore(build_blob_store(settings)).load()
        if snapshot is None:
            return {"status": "warning", "message": "No snapshot yet"}

        age_sec = (datetime.now(UTC) - snapshot.fetched_at).total_seconds()
        with_wait = sum(1 for r in snapshot.records if r.wait_minutes is not None)

        status = "healthy"
        if age_sec > settings.REFRESH_INTERVAL_SEC * 3:
            status = "warning"
        if with_wait == 0:
            status = "degraded"

        return {
            "status": status,
            "fetched_at": snapshot.fetched_at.isoformat(),
            "age_sec": int(age_sec),
            "records": len(snapshot.records),
            "with_wait": with_wait,
        }

    except Exception as e:
        return {"status": "unhealthy", "error": str(e)}


async def run_full_check() -> dict:
    """运行完整健康检查。"""
    results = {
        "timestamp": datetime.now(UTC).isoformat(),
        "overall_status": "healthy",
        "components": {},
    }

    # 并行执行所有检查
    names = ["blob_store", "redis", "queues", "snapshot"]
    outcomes = await asyncio.gather(
        check_blob_store(),
        check_redis(),
        check_queues(),
        check_snapshot(),
        return_exceptions=True,
    )

    for name, outcome in zip(names, outcomes, strict=True):
        results["components"][name] = (
            outcome
            if not isinstance(outcome, Exception)
            else {"status": "error", "error": str(outcome)}
        )

    # 确定整体状态
    statuses = [c.get("status", "unknown") for c in results["components"].values()]

    if any(s in ("unhealthy", "error") for s in statuses):
        results["overall_status"] = "unhealthy"
    elif any(s in ("warning", "degraded") for s in statuses):
        results["overall_status"] = "degraded"

    return results


async def run_component_check(component: str) -> dict:
    """运行单个组件检查。"""
    checkers = {
        "blob_store": check_blob_store,
        "redis": check_redis,
        "queues": check_queues,
        "snapshot": check_snapshot,
    }

    if component not in checkers:
        return {"error": f"Unknown component: {component}"}

    result = await checkers[component]()
    return {
        "timestamp": datetime.now(UTC).isoformat(),
        "component": component,
        "result": result,
    }


def _emoji(status: str) -> str:
    if status == "healthy":
        return "✅"
    if status in ("warning", "degraded"):
        return "⚠️"
    return "❌"


def print_result(result: dict, json_output: bool = False):
    """打印检查结果。"""
    if json_output:
        print(json.dumps(result, indent=2))
        return

    print(f"\n{'=' * 60}")
    print(f"Health Check Report - {result.get('timestamp', 'N/A')}")
    print(f"{'=' * 60}")

    if "overall_status" in result:
        overall = result["overall_status"]
        print(f"\nOverall Status: {_emoji(overall)} {overall.upper()}")

        print(f"\n{'-' * 40}")
        for component, info in result.get("components", {}).items():
            comp_status = info.get("status", "unknown")
            print(f"{_emoji(comp_status)} {component}: {comp_status}")

            # 打印额外信息
            if comp_status != "healthy":
                for key, value in info.items():
                    if key != "status":
                        print(f"    {key}: {value}")

    elif "result" in result:
        info = result["result"]
        comp_status = info.get("status", "unknown")
        print(
            f"\n{result.get('component', 'Component')}: "
            f"{_emoji(comp_status)} {comp_status}"
        )

        for key, value in info.items():
            if key != "status":
                print(f"  {key}: {value}")

    print(f"\n{'=' * 60}\n")


def main():
    """主函数。"""
    parser = argparse.ArgumentParser(description="系统健康检查脚本")
    parser.add_argument(
        "--component",
        "-c",
        type=str,
        choices=["blob_store", "redis", "queues", "snapshot"],
        help="只检查特定组件",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="输出 JSON 格式",
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        help="严格模式：任何非 healthy 状态都返回非零退出码",
    )

    args = parser.parse_args()

    if args.component:
        result = asyncio.run(run_component_check(args.component))
    else:
        result = asyncio.run(run_full_check())

    print_result(result, args.json)

    # 确定退出码
    if args.strict:
        overall = result.get(
            "overall_status", result.get("result", {}).get("status", "unknown")
        )
        if overall != "healthy":
            sys.exit(1)

    sys.exit(0)


if __name__ == "__main__":
    main()
