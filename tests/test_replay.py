import json
import tempfile
import unittest
from datetime import datetime, timezone
from pathlib import Path

from squatcount.recorder import MotionRecorder, default_filename
from squatcount.replay import (
    RecordingError,
    ReplayClock,
    load_recording,
    parse_records,
    recording_stats,
    replay_recording,
)
from squatcount.resample import estimate_sample_rate, resample_to_hz, validate_sample_rate
from squatcount.sensitivity import map_sensitivity

from synthetic_motion import STAND, as_recording, segment, squat_cycle


def _two_rep_recording():
    hold = map_sensitivity(5.0).min_action_time + 0.2
    steps = list(segment(1.0, STAND))
    steps += list(squat_cycle(hold_squat=hold))
    steps += list(squat_cycle(hold_squat=hold))
    return as_recording(steps)


class ReplayTests(unittest.TestCase):
    def test_replay_counts_recorded_squats(self) -> None:
        rows = parse_records(_two_rep_recording())
        session, events = replay_recording(rows, sensitivity=5.0)
        self.assertEqual(session.count, 2)
        self.assertEqual([e.rep for e in events], [1, 2])
        self.assertIsNotNone(events[1].tempo_sec)

    def test_replay_after_resampling(self) -> None:
        rows = parse_records(_two_rep_recording())
        session, _ = replay_recording(rows, resample_hz=50.0, sensitivity=5.0)
        self.assertEqual(session.count, 2)

    def test_load_recording_from_file(self) -> None:
        records = _two_rep_recording()
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "squat.json"
            path.write_text(json.dumps(records), encoding="utf-8")
            rows = load_recording(str(path))
        self.assertEqual(len(rows), len(records))
        self.assertAlmostEqual(rows[0]["timestamp"], records[0]["timestamp"] / 1000.0)

    def test_missing_axes_become_none(self) -> None:
        rows = parse_records([
            {"timestamp": 0, "acceleration": None, "orientation": {"beta": 31.0}},
            {"timestamp": 20, "acceleration": {"y": None}, "orientation": None},
        ])
        self.assertIsNone(rows[0]["accel_y"])
        self.assertEqual(rows[0]["beta"], 31.0)
        self.assertIsNone(rows[1]["accel_y"])
        self.assertIsNone(rows[1]["beta"])

    def test_invalid_recordings_raise(self) -> None:
        with self.assertRaises(RecordingError):
            parse_records({"timestamp": 0})
        with self.assertRaises(RecordingError):
            parse_records([{"acceleration": {"y": -9.0}}])
        with self.assertRaises(RecordingError):
            load_recording("/nonexistent/squat.json")

    def test_recording_stats(self) -> None:
        rows = parse_records(_two_rep_recording())
        stats = recording_stats(rows)
        self.assertAlmostEqual(stats["estimated_hz"], 50.0, delta=0.5)
        self.assertEqual(stats["motion_samples"], len(rows))
        self.assertTrue(stats["rate_check"]["valid"])

    def test_replay_requires_replay_clock(self) -> None:
        from squatcount.session import SquatSession

        with self.assertRaises(ValueError):
            replay_recording(parse_records(_two_rep_recording()), session=SquatSession())


class ReplayClockTests(unittest.TestCase):
    def test_clock_never_runs_backwards(self) -> None:
        clock = ReplayClock()
        clock.set(2.0)
        clock.set(1.0)
        self.assertEqual(clock(), 2.0)
        self.assertEqual(clock.advance(0.5), 2.5)


class ResampleTests(unittest.TestCase):
    def test_estimate_sample_rate(self) -> None:
        samples = [{"timestamp": i * 0.01} for i in range(101)]
        self.assertAlmostEqual(estimate_sample_rate(samples), 100.0)
        self.assertIsNone(estimate_sample_rate(samples[:1]))

    def test_validate_sample_rate_flags_wrong_rate(self) -> None:
        samples = [{"timestamp": i * 0.04} for i in range(50)]
        result = validate_sample_rate(samples, expected_hz=50.0)
        self.assertFalse(result["valid"])
        self.assertAlmostEqual(result["estimated_hz"], 25.0)
        self.assertFalse(validate_sample_rate([], expected_hz=50.0)["valid"])

    def test_resample_interpolates_and_skips_missing_values(self) -> None:
        samples = [
            {"timestamp": 0.0, "accel_y": 0.0, "beta": None},
            {"timestamp": 0.1, "accel_y": None, "beta": None},
            {"timestamp": 0.2, "accel_y": 2.0, "beta": None},
        ]
        out = resample_to_hz(samples, 20.0, ["accel_y", "beta"])
        self.assertEqual(len(out), 5)
        self.assertAlmostEqual(out[2]["accel_y"], 1.0)
        self.assertIsNone(out[0]["beta"])


class MotionRecorderTests(unittest.TestCase):
    def test_snapshots_latest_readings_at_fixed_interval(self) -> None:
        clock = ReplayClock()
        rec = MotionRecorder(interval_sec=0.02, clock=clock)
        rec.begin()
        rec.on_motion(0.1, -9.0, 1.0)
        clock.advance(0.05)
        self.assertEqual(rec.tick(), 3)  # t = 0, 20, 40 ms
        self.assertIsNone(rec.records[0]["orientation"])
        self.assertEqual(rec.records[0]["acceleration"]["y"], -9.0)
        self.assertEqual([r["timestamp"] for r in rec.records], [0, 20, 40])

        rec.on_orientation(180.0, 33.0, 1.5)
        clock.advance(0.02)
        rec.tick()
        self.assertEqual(rec.records[-1]["orientation"]["beta"], 33.0)

        rec.stop()
        self.assertEqual(rec.tick(), 0)
        self.assertIn(f"Recorded {len(rec.records)} samples", rec.status_text())

    def test_saved_recording_loads_back(self) -> None:
        clock = ReplayClock()
        rec = MotionRecorder(interval_sec=0.02, clock=clock)
        rec.begin()
        rec.on_motion(0.0, -8.5, 1.0)
        rec.on_orientation(0.0, 30.0, 0.0)
        clock.advance(0.2)
        rec.tick()
        rec.stop()
        with tempfile.TemporaryDirectory() as tmp:
            path = rec.save(str(Path(tmp) / "sub" / "rec.json"))
            rows = load_recording(path)
        self.assertEqual(len(rows), len(rec.records))
        self.assertEqual(rows[-1]["beta"], 30.0)

    def test_default_filename(self) -> None:
        name = default_filename(datetime(2024, 5, 1, 12, 30, 0, tzinfo=timezone.utc))
        self.assertEqual(name, "squat-motion-data-2024-05-01T12-30-00Z.json")


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
