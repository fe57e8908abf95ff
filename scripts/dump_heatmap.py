#!/usr/bin/env python3
"""Print the visible heatmap window around a position.

Diagnostic tool: feeds one simulated location into a HeatmapSession and
prints the resulting window as a signal table, plus the nearest emitters.

Usage:
    python scripts/dump_heatmap.py
    python scripts/dump_heatmap.py --lat 25.0330 --lng 121.5654 --profile mobile
    python scripts/dump_heatmap.py --ascii --span 0.05

Output:
    Rows are north to south, columns west to east.
"""

from __future__ import annotations

import argparse
import logging

import numpy as np

from application import HeatmapSession, HeatmapSettings
from domain.coverage.services import sample_signal_field
from domain.coverage.value_objects import SignalField
from domain.grid.errors import InvalidCoordinateError
from domain.grid.value_objects import GeoPoint
from infrastructure.location import SimulatedLocationProvider
from shared.default_emitters import DEFAULT_LOCATION

# Darkest to brightest
ASCII_RAMP = " .:-=+*#%@"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--lat", default=str(DEFAULT_LOCATION.latitude))
    parser.add_argument("--lng", default=str(DEFAULT_LOCATION.longitude))
    parser.add_argument("--profile", choices=["mobile", "desktop"], default="desktop")
    parser.add_argument(
        "--ascii", action="store_true", help="Render a coarse field overview instead"
    )
    parser.add_argument("--span", type=float, default=0.04, help="Overview span (deg)")
    parser.add_argument("--size", type=int, default=40, help="Overview resolution")
    parser.add_argument("-v", "--verbose", action="store_true")
    return parser


def print_window(session: HeatmapSession) -> None:
    """Print the visible window as a (2r+1) x (2r+1) table of signal values."""
    radius = session.settings.visible_radius
    side = 2 * radius + 1
    cells = session.visible_cells
    # Loop order is longitude-major, latitude-minor
    for row in reversed(range(side)):
        print(" ".join(f"{cells[col * side + row].signal_value:3d}" for col in range(side)))


def print_overview(
    field: SignalField, center: GeoPoint, span: float, size: int
) -> None:
    """Print an ASCII shading of the whole field around a point."""
    lats = np.linspace(center.latitude + span / 2, center.latitude - span / 2, size)
    lngs = np.linspace(center.longitude - span / 2, center.longitude + span / 2, size * 2)
    values = sample_signal_field(field, lats[:, np.newaxis], lngs[np.newaxis, :])
    scale = len(ASCII_RAMP) - 1
    for row in values:
        print("".join(ASCII_RAMP[int(v) * scale // 100] for v in row))


def main(argv: list[str] | None = None) -> int:
    """Run the dump.

    Returns:
        0 on success, 1 on invalid input
    """
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    session = HeatmapSession(HeatmapSettings.for_profile(args.profile))
    provider = SimulatedLocationProvider()
    session.attach(provider)

    try:
        sample = provider.submit(args.lat, args.lng)
    except InvalidCoordinateError as e:
        print(f"ERROR: {e}")
        return 1

    print("=" * 60)
    status = session.status()
    print(f"Position: {args.lat}, {args.lng} | signal: {status['signal']}")
    print(f"Window: {status['visible_cells']} cells | cache: {status['cache_size']}")
    print("=" * 60)

    if args.ascii:
        print_overview(session.field, sample.point, args.span, args.size)
    else:
        print_window(session)

    print("\nNearest emitters:")
    for entry in session.nearest_emitters():
        name = entry.emitter.name or entry.emitter.id
        print(f"  {name:24} power {entry.emitter.power:5.1f} {entry.distance_m:8.0f}m")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
