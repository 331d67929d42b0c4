import argparse

from loguru import logger

from slunch.app_logging import configure_logging
from slunch.config import get_settings
from slunch.containers import build_container
from slunch.db.database import init_db
from slunch.utils import validate_time

settings = get_settings()


def init_database():
    """初始化資料庫"""
    container = build_container(settings)
    try:
        init_db(container.engine)
    finally:
        container.close()


def run_precache():
    """手動執行餐點預先快取"""
    container = build_container(settings)
    try:
        init_db(container.engine)
        report = container.precache.run()
        logger.info(f"Result: {report.summary()}")
        for label in report.failed:
            logger.warning(f"Failed: {label}")
    finally:
        container.close()


def run_tick(at: str = None):
    """手動觸發一次推播（可指定 HH:MM）"""
    container = build_container(settings)
    try:
        init_db(container.engine)
        now = container.clock()
        if at:
            hour, minute = validate_time(at).split(":")
            now = now.replace(hour=int(hour), minute=int(minute), second=0, microsecond=0)
        result = container.dispatcher.tick(now)
        logger.info(f"Result: {result}")
    finally:
        container.close()


def prune_access():
    """清理過期的存取統計"""
    container = build_container(settings)
    try:
        init_db(container.engine)
        container.access_tracker.prune()
    finally:
        container.close()


def main():
    parser = argparse.ArgumentParser(description="Slunch CLI")
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # init command
    subparsers.add_parser("init", help="Initialize database")

    # serve command
    subparsers.add_parser("serve", help="Start API server")

    # precache command
    subparsers.add_parser("precache", help="Precache today's and tomorrow's meals")

    # tick command
    tick_parser = subparsers.add_parser("tick", help="Run one notification tick")
    tick_parser.add_argument("--at", help="Tick time as HH:MM (default: now)")

    # prune-access command
    subparsers.add_parser("prune-access", help="Prune stale school access statistics")

    args = parser.parse_args()
    configure_logging(settings)

    if args.command == "init":
        init_database()
    elif args.command == "serve":
        import uvicorn

        uvicorn.run(
            "slunch.main:app",
            host=settings.api_host,
            port=settings.api_port,
            reload=settings.debug,
        )
    elif args.command == "precache":
        run_precache()
    elif args.command == "tick":
        run_tick(args.at)
    elif args.command == "prune-access":
        prune_access()
    else:
        parser.print_help()


if __name__ == "__main__":
    main()
