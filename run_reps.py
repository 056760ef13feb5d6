"""
Replay a recorded squat set and print the rep count.

Usage:
    python run_reps.py squat-motion-data.json
    python run_reps.py squat-motion-data.json --sensitivity 7 --combinator any
"""

import argparse
import json
import logging
import sys

from squatcount import config
from squatcount.replay import RecordingError, load_recording, recording_stats, replay_recording


def main(argv=None) -> int:
    ap = argparse.ArgumentParser(description="Replay recorded motion data through the squat counter")
    ap.add_argument("recording", help="JSON recording (list of timestamped samples)")
    ap.add_argument("--sensitivity", type=float, default=config.DEFAULT_SENSITIVITY,
                    help=f"Speed/sensitivity {config.SENSITIVITY_RANGE[0]:g}-{config.SENSITIVITY_RANGE[1]:g}")
    ap.add_argument("--combinator", choices=["all", "any"], default=config.COMBINATOR,
                    help="all: both signals must agree, any: either suffices")
    ap.add_argument("--buffer-size", type=int, default=config.BUFFER_SIZE)
    ap.add_argument("--resample-hz", type=float, default=None,
                    help="Resample the recording to a uniform rate first")
    ap.add_argument("--no-min-change", action="store_true",
                    help="Disable the minimum-movement requirement")
    ap.add_argument("--json", action="store_true", help="Print the session summary as JSON")
    ap.add_argument("-v", "--verbose", action="store_true")
    args = ap.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        rows = load_recording(args.recording)
    except RecordingError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    if not rows:
        print("Error: recording is empty", file=sys.stderr)
        return 1

    session, events = replay_recording(
        rows,
        resample_hz=args.resample_hz,
        sensitivity=args.sensitivity,
        combinator=args.combinator,
        buffer_size=args.buffer_size,
        use_min_change=not args.no_min_change,
    )

    if args.json:
        out = session.summary()
        out["recording"] = recording_stats(rows)
        print(json.dumps(out, indent=2))
        return 0

    stats = recording_stats(rows)
    print("\n--- SQUAT REPLAY ---")
    print(f"samples={stats['samples']}  duration={stats['duration_sec']:.1f}s  rate={stats['estimated_hz']} Hz")
    for ev in events:
        tempo = "" if ev.tempo_sec is None else f"  tempo={ev.tempo_sec:.2f}s"
        print(f"rep={ev.rep:3d}  t={ev.t:7.2f}s{tempo}")
    print(f"\nTotal reps: {session.count}  (abandoned: {session.machine.abandoned})")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
