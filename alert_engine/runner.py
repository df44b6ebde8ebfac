"""
CLI runner for the alert engine.

Usage:
    python -m alert_engine.runner run               # Synthetic alerts until Ctrl+C
    python -m alert_engine.runner run --demo -v     # Seed sample alerts first
    python -m alert_engine.runner serve --port 8080 # HTTP API
    python -m alert_engine.runner metrics           # Metrics for a demo engine
"""

import argparse
import asyncio
import json
import logging
import sys

from .alert_store import Alert
from .scheduler import AsyncioTicker, ThreadingTicker
from .service import AlertService
from .storage import MemoryKeyValueStore

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False) -> None:
    """Configure logging."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def log_snapshot(alerts: list[Alert]) -> None:
    """Observer that summarizes every broadcast."""
    unread = sum(1 for a in alerts if not a.is_read and not a.is_resolved)
    resolved = sum(1 for a in alerts if a.is_resolved)
    latest = f" | latest: {alerts[0].title}" if alerts else ""
    logger.info(f"{len(alerts)} alert(s), {unread} unread, {resolved} resolved{latest}")


def cmd_run(args) -> int:
    """Run the engine with synthetic alerts until interrupted."""
    service = AlertService(
        ticker=AsyncioTicker(),
        synthetic_enabled=True,
        synthetic_interval=args.interval,
        auto_resolve_interval=args.resolve_interval,
    )
    service.subscribe(log_snapshot)
    if args.demo:
        service.generator.seed_demo_alerts()

    print("Alert engine running. Press Ctrl+C to stop.")
    try:
        asyncio.run(service.run())
    except KeyboardInterrupt:
        service.shutdown()

    print(json.dumps(service.get_metrics().to_dict(), indent=2))
    return 0


def cmd_serve(args) -> int:
    """Serve the HTTP API."""
    from dashboard.app import create_app

    service = AlertService(ticker=ThreadingTicker())
    if args.demo:
        service.generator.seed_demo_alerts()
    service.start()

    app = create_app(service=service)
    try:
        app.run(host=args.host, port=args.port)
    finally:
        service.shutdown()
    return 0


def cmd_metrics(args) -> int:
    """Print metrics for a freshly seeded demo engine."""
    service = AlertService(kv_store=MemoryKeyValueStore(), synthetic_enabled=False)
    service.generator.seed_demo_alerts()
    print(json.dumps(service.get_metrics().to_dict(), indent=2))
    service.shutdown()
    return 0


def main() -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Alert & notification delivery engine"
    )
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    run_parser = subparsers.add_parser(
        "run", parents=[common], help="Run with synthetic alerts"
    )
    run_parser.add_argument(
        "--demo",
        action="store_true",
        help="Seed sample alerts before starting",
    )
    run_parser.add_argument(
        "--interval",
        type=float,
        default=None,
        help="Seconds between synthetic alert attempts (default: SYNTHETIC_INTERVAL)",
    )
    run_parser.add_argument(
        "--resolve-interval",
        type=float,
        default=None,
        help="Seconds between auto-resolve attempts (default: AUTO_RESOLVE_INTERVAL)",
    )

    serve_parser = subparsers.add_parser(
        "serve", parents=[common], help="Serve the HTTP API"
    )
    serve_parser.add_argument("--host", default="127.0.0.1", help="Bind address")
    serve_parser.add_argument("--port", type=int, default=5000, help="Port")
    serve_parser.add_argument(
        "--demo",
        action="store_true",
        help="Seed sample alerts before serving",
    )

    subparsers.add_parser(
        "metrics", parents=[common], help="Print metrics for a demo engine"
    )

    args = parser.parse_args()
    setup_logging(getattr(args, "verbose", False))

    if args.command == "run":
        return cmd_run(args)
    if args.command == "serve":
        return cmd_serve(args)
    if args.command == "metrics":
        return cmd_metrics(args)

    parser.print_help()
    return 1


if __name__ == "__main__":
    sys.exit(main())
