#!/usr/bin/env python3
"""Watch the live fleet from a terminal.

Loads the latest-positions snapshot, follows the live stream and prints a
one-line fleet summary whenever an entity changes.  Optionally prints the
processed history track of one entity first.

Usage
-----
Set environment variables and run::

    export FLEET_API_URL="http://localhost:5000"
    python scripts/watch_fleet.py

Options::

    --track ID           Print the processed history track for entity ID
    --range {1h,6h,24h}  History look-back for --track (default: 24h)
    --seconds N          Stop watching after N seconds (default: run forever)
    --reconnect N        Reopen the stream N seconds after a failure
    --verbose            Enable DEBUG logging
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

# Allow running from the repo root without installing the package.
_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from pyfleet import FleetClient, FleetConfig, HistoryRange, NetworkError  # noqa: E402
from pyfleet.view.summary import freshness, summarize_fleet  # noqa: E402


async def _print_track(client: FleetClient, entity_id: str, track_range: str) -> None:
    track = await client.get_track(entity_id, HistoryRange(track_range))
    stats = track.stats
    print(f"Track {entity_id} ({track_range}):")
    print(f"  pings={stats.ping_count} avg={stats.avg_speed_kmh:.1f} km/h distance={stats.total_distance_km:.1f} km")
    for point in track.points:
        print(f"  {point.timestamp.isoformat()}  {point.lat:.6f},{point.lng:.6f}  {point.band.value}")


async def main(args: argparse.Namespace) -> int:
    overrides: dict[str, float] = {}
    if args.reconnect is not None:
        overrides["reconnect_delay"] = args.reconnect
    config = FleetConfig.from_env(**overrides)

    async with FleetClient(config) as client:
        if args.track:
            try:
                await _print_track(client, args.track, args.range)
            except NetworkError as exc:
                print(f"History fetch failed: {exc}", file=sys.stderr)

        async with client.live() as live:
            try:
                await live.load_snapshot()
            except NetworkError as exc:
                print(f"Snapshot fetch failed: {exc}", file=sys.stderr)
                return 1

            def _on_change(entity_id: str | None) -> None:
                summary = summarize_fleet(live.entities().values())
                line = (
                    f"[{live.connection_state.value}] online {summary.online}/{summary.total} "
                    f"moving {summary.moving} top {summary.top_speed_kmh:.0f} km/h"
                )
                if entity_id is not None:
                    entity = live.get(entity_id)
                    if entity is not None:
                        line += f" | {entity.name or entity.id}: {freshness(entity).label}"
                print(line)

            live.add_listener(_on_change)
            live.add_state_listener(lambda state: print(f"stream: {state.value}"))
            _on_change(None)

            if args.seconds is None:
                await asyncio.Event().wait()
            else:
                await asyncio.sleep(args.seconds)
    return 0


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Watch the live fleet")
    parser.add_argument("--track", help="Print the processed history track for this entity id")
    parser.add_argument("--range", default="24h", choices=[r.value for r in HistoryRange])
    parser.add_argument("--seconds", type=float, default=None)
    parser.add_argument("--reconnect", type=float, default=None)
    parser.add_argument("--verbose", action="store_true")
    return parser.parse_args()


if __name__ == "__main__":
    cli_args = _parse_args()
    logging.basicConfig(level=logging.DEBUG if cli_args.verbose else logging.WARNING)
    try:
        sys.exit(asyncio.run(main(cli_args)))
    except KeyboardInterrupt:
        sys.exit(130)
