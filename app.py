from __future__ import annotations

import argparse
import asyncio
import json
import os
import sys
from typing import Any, Dict, Optional

from miniapp_session.core.config import ConfigFsPaths, ConfigManager, SessionConfig
from miniapp_session.core.error_reporter import ErrorReporter, ErrorReporterConfig
from miniapp_session.core.events import EventLogger
from miniapp_session.core.host import FixtureHostPlatform
from miniapp_session.core.logger import setup_logging
from miniapp_session.core.session import SessionRecord, build_session_context
from miniapp_session.core.wallet import short_address


def render_summary(record: SessionRecord) -> str:
    """One-line view of the session, the way a header bar would show it."""
    if record.loading:
        return "Loading..."
    parts = []
    if record.identity is not None:
        parts.append(record.identity.label)
    if record.address:
        parts.append(short_address(record.address))
    if not parts:
        parts.append("(no wallet)")
    if record.error is not None:
        parts.append(f"[{record.error.kind.value}: {record.error.message}]")
    return f"{record.environment.value if record.environment else '?'}: " + " ".join(parts)


async def run_session(
    *,
    host,
    cfg: SessionConfig,
    logger,
    event_logger: Optional[EventLogger] = None,
    error_reporter: Optional[ErrorReporter] = None,
    connect_wallet: bool = False,
) -> Dict[str, Any]:
    ctx = build_session_context(host=host, cfg=cfg, logger=logger, event_logger=event_logger, error_reporter=error_reporter)
    ctx.aggregator.start()
    try:
        record = await ctx.aggregator.wait_settled()
        out: Dict[str, Any] = {"session": record.model_dump(mode="json"), "summary": render_summary(record)}
        if connect_wallet:
            address = await ctx.connect.connect_wallet()
            out["connect_wallet"] = {"address": address, "error": ctx.connect.error}
            record = await ctx.aggregator.wait_settled()
            out["session_after_connect"] = record.model_dump(mode="json")
        return out
    finally:
        await ctx.aggregator.close()


def main(argv: Optional[list[str]] = None) -> int:
    ap = argparse.ArgumentParser(description="Resolve the current user/session (host platform or standalone)")
    ap.add_argument("--host-fixture", default=None, help="JSON file describing the host platform. Omit to run standalone.")
    ap.add_argument("--config-root", default=".", help="Directory holding config/session.json.")
    ap.add_argument("--read-only-config", action="store_true", help="Never write config/session.json.")
    ap.add_argument("--connect-wallet", action="store_true", help="Also run connect_wallet() after resolution.")
    ap.add_argument("--summary", action="store_true", help="Print only the one-line summary.")
    ap.add_argument("--print-config", action="store_true", help="Print the validated config and exit.")
    args = ap.parse_args(argv)

    cm = ConfigManager(fs=ConfigFsPaths(args.config_root), logger=None, read_only=bool(args.read_only_config))
    cfg = cm.load()
    if args.print_config:
        print(json.dumps(cfg.model_dump(), indent=2, sort_keys=True))
        return 0

    logger = setup_logging(os.path.join(args.config_root, cfg.logging.log_dir), level=cfg.logging.level, console=cfg.logging.console)
    event_logger = EventLogger(os.path.join(args.config_root, cfg.logging.events_path))
    error_reporter = ErrorReporter(
        path=os.path.join(args.config_root, cfg.logging.errors_path),
        cfg=ErrorReporterConfig(include_tracebacks=cfg.logging.include_tracebacks),
    )

    host = None
    if args.host_fixture:
        host = FixtureHostPlatform.from_file(
            args.host_fixture,
            timeout_seconds=cfg.timeouts.backend_profile_seconds,
            default_api_base_url=cfg.host.api_base_url,
            logger=logger,
        )

    out = asyncio.run(
        run_session(
            host=host,
            cfg=cfg,
            logger=logger,
            event_logger=event_logger,
            error_reporter=error_reporter,
            connect_wallet=bool(args.connect_wallet),
        )
    )
    if args.summary:
        print(out["summary"])
    else:
        print(json.dumps(out, indent=2, sort_keys=True))

    err = (out["session"] or {}).get("error")
    return 1 if err and err.get("terminal") else 0


if __name__ == "__main__":
    sys.exit(main())
