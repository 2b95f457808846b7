#!/usr/bin/env python3
"""
Offline shake tuning tool - replays recorded accelerometer samples
through the classifier and prints every detected shake.

CSV columns: timestamp_ms,x,y,z,linear   (linear = 1 when gravity excluded)
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List

import numpy as np

from storefront.app.config import MotionSettings
from storefront.app.models import MotionSample
from storefront.app.sensors.motion import MotionSignalClassifier
from storefront.app.state import Decision

log = logging.getLogger("replay_motion")


def load_samples(path: Path, skip_header: int) -> List[MotionSample]:
    rows = np.loadtxt(path, delimiter=",", comments="#", skiprows=skip_header, ndmin=2)
    if rows.shape[1] < 5:
        raise ValueError(f"expected 5 columns (timestamp_ms,x,y,z,linear), got {rows.shape[1]}")
    return [
        MotionSample(
            x=float(row[1]),
            y=float(row[2]),
            z=float(row[3]),
            timestamp_ms=int(row[0]),
            has_linear_acceleration=bool(row[4]),
        )
        for row in rows
    ]


def replay(samples: List[MotionSample], settings: MotionSettings) -> List[int]:
    """Return the timestamps of every sample classified as a shake."""
    if not samples:
        return []
    classifier = MotionSignalClassifier(settings)
    state = classifier.initial_state(samples[0].timestamp_ms)
    shakes = []
    for sample in samples:
        decision, state = classifier.classify(sample, state)
        if decision is Decision.SHAKE:
            shakes.append(sample.timestamp_ms)
    return shakes


def main(argv: List[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Replay recorded motion samples through the shake classifier")
    parser.add_argument("csv", type=Path, help="Recorded samples (timestamp_ms,x,y,z,linear)")
    parser.add_argument("--skip-header", type=int, default=1, help="Header rows to skip")
    parser.add_argument("--acc-threshold", type=float, default=MotionSettings().acc_threshold)
    parser.add_argument("--gravity-threshold", type=float, default=MotionSettings().gravity_threshold)
    parser.add_argument("--startup-guard-ms", type=int, default=MotionSettings().startup_guard_ms)
    parser.add_argument("-v", "--verbose", action="store_true")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO, format="%(levelname)s %(message)s")

    try:
        samples = load_samples(args.csv, args.skip_header)
    except (OSError, ValueError) as e:
        log.error("Could not read %s: %s", args.csv, e)
        return 1

    settings = MotionSettings(
        acc_threshold=args.acc_threshold,
        gravity_threshold=args.gravity_threshold,
        startup_guard_ms=args.startup_guard_ms,
    )
    shakes = replay(samples, settings)

    print("=" * 50)
    print(f"📳 {len(shakes)} shake(s) in {len(samples)} samples")
    print("=" * 50)
    for ts in shakes:
        print(f"   t={ts:>8}ms")
    return 0


if __name__ == "__main__":
    sys.exit(main())
