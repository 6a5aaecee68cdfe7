import argparse
import asyncio
import json
import logging
import sys
from dataclasses import asdict
from pathlib import Path
from typing import Optional, Sequence

from exocore_console.app_container import build_console
from exocore_console.config import DEFAULT_CONFIG_DIR, ConsoleConfig, load_config
from exocore_console.domain.audit import AuditState
from exocore_console.domain.console_state import VIEW_TABS
from exocore_console.errors import ConsoleError
from exocore_console.services.console import TelemetryConsole


def _configure_logging(level: str) -> None:
    level = (level or "INFO").upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _print_config(config: ConsoleConfig) -> None:
    print(f"Config dir: {config.config_dir}")
    print(f"Env file: {config.env_path}")
    print(f"Poll interval: {config.poll_interval_sec}s")
    print(f"Reveal: {config.reveal_chunk_chars} chars every {config.reveal_interval_sec * 1000:.0f}ms")
    print(f"Sampler seed: {config.sampler_seed if config.sampler_seed is not None else 'random'}")


async def _snapshot(console: TelemetryConsole) -> int:
    await console.load()
    payload = {
        "summary": console.summary(),
        "extensions": [asdict(e) for e in console.snapshot.extensions],
        "tabs": [asdict(t) for t in console.heaviest_tabs()],
        "resource_impact": [asdict(entry) for entry in console.get_resource_impact()],
    }
    print(json.dumps(payload, indent=2, ensure_ascii=False))
    return 0


async def _audit(console: TelemetryConsole, extension_id: str) -> int:
    await console.load()
    shown = 0

    def _on_state(state: AuditState) -> None:
        nonlocal shown
        sys.stdout.write(state.content[shown:])
        sys.stdout.flush()
        shown = len(state.content)

    console.subscribe_audit_reveal(_on_state)
    try:
        handle = await console.start_audit(extension_id)
        await handle.wait()
    finally:
        await console.aclose()
    return 0


async def _watch(console: TelemetryConsole, ticks: int) -> int:
    await console.load()
    done = asyncio.Event()
    seen = 0

    def _on_tabs(tabs) -> None:
        nonlocal seen
        seen += 1
        heaviest = sorted(tabs, key=lambda t: t.memory, reverse=True)
        print(json.dumps({"tick": seen, "tabs": [asdict(t) for t in heaviest]}, ensure_ascii=False))
        if seen >= ticks:
            done.set()

    console.subscribe_tab_snapshots(_on_tabs)
    await console.set_view(VIEW_TABS)
    try:
        await done.wait()
    finally:
        await console.aclose()
    return 0


def main(argv: Optional[Sequence[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="ExoCore extension & tab telemetry console")
    parser.add_argument(
        "--config-dir",
        default=str(DEFAULT_CONFIG_DIR),
        help="Directory holding the .env config (default: ~/.config/exocore-console)",
    )
    parser.add_argument("--print-config", action="store_true", help="Print active config summary")
    parser.add_argument("--snapshot", action="store_true", help="Print one telemetry snapshot as JSON")
    parser.add_argument("--audit", metavar="EXTENSION_ID", help="Stream an audit report for one extension")
    parser.add_argument("--watch", type=int, metavar="TICKS", help="Poll tab telemetry for N ticks")
    parser.add_argument(
        "--control-center",
        action="store_true",
        help="Serve the local Control Center API instead of a one-off command",
    )
    parser.add_argument("--host", default="127.0.0.1", help="Control Center bind host")
    parser.add_argument("--port", type=int, default=8766, help="Control Center bind port")
    parser.add_argument("--log-level", default=None)

    args = parser.parse_args(argv)
    config = load_config(Path(args.config_dir).expanduser().resolve())
    log_level = args.log_level or config.log_level
    _configure_logging(log_level)

    if args.print_config:
        _print_config(config)
        return

    console = build_console(config=config)

    if args.control_center:
        from exocore_console.control_center.app import create_app
        import uvicorn

        uvicorn.run(create_app(console), host=args.host, port=args.port, log_level=log_level.lower())
        return

    try:
        if args.audit:
            code = asyncio.run(_audit(console, args.audit))
        elif args.watch is not None:
            code = asyncio.run(_watch(console, max(1, args.watch)))
        else:
            code = asyncio.run(_snapshot(console))
    except ConsoleError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)
    sys.exit(code)


if __name__ == "__main__":
    main()
