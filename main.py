#!/usr/bin/env python3
import argparse
import asyncio
import signal
import sys

from rich.console import Console
from rich.table import Table

from config.logging_config import configure
from config.app_config import AcquisitionConfig
from energy_acquisition.core.exceptions import ConfigurationError
from energy_acquisition.orchestration import AcquisitionEngine


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        prog="energy-acquisition",
        description="Poll a three-phase power meter over Modbus TCP/RTU.",
    )
    parser.add_argument("--once", action="store_true",
                        help="read the full register map once, print it and exit")
    parser.add_argument("--mock", action="store_true",
                        help="serve simulated readings instead of talking to a meter")
    parser.add_argument("--interval", type=float, default=None,
                        help="poll interval in seconds (default: POLL_INTERVAL_SECONDS)")
    parser.add_argument("--log-level", default=None,
                        help="override LOG_LEVEL")
    return parser.parse_args(argv)


def render_snapshot(snapshot, location):
    table = Table(title=f"Meter snapshot - {location}")
    table.add_column("Key")
    table.add_column("Metric")
    table.add_column("Phase")
    table.add_column("Value", justify="right")
    table.add_column("Unit")
    for key, m in snapshot.items():
        value = "[red]n/a[/red]" if m.is_null else f"{m.value:.3f}"
        table.add_row(key, m.metric, m.phase or "-", value, m.unit)
    Console().print(table)


async def run_once(engine: AcquisitionEngine) -> int:
    if not await engine.connection.connect():
        return 1
    try:
        snapshot = await engine.read_snapshot()
    finally:
        await engine.connection.disconnect()
    render_snapshot(snapshot, engine.config.location)
    return 0


async def run_forever(engine: AcquisitionEngine) -> int:
    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop.set)
        except NotImplementedError:
            # Windows event loops have no signal handler support
            pass

    await engine.startup()
    try:
        await stop.wait()
    finally:
        await engine.shutdown()
    return 0


async def async_main(argv=None) -> int:
    args = parse_args(argv)
    configure(args.log_level)
    try:
        config = AcquisitionConfig.from_settings().with_overrides(
            mode="mock" if args.mock else None,
            poll_interval=args.interval,
        )
    except ConfigurationError as e:
        Console(stderr=True).print(f"[red]configuration error:[/red] {e}")
        return 2

    engine = AcquisitionEngine(config)
    if args.once:
        return await run_once(engine)
    return await run_forever(engine)


def main(argv=None):
    try:
        sys.exit(asyncio.run(async_main(argv)))
    except KeyboardInterrupt:
        sys.exit("🌙  graceful shutdown")


if __name__ == "__main__":
    main()
