import asyncio
import json
import tempfile
import unittest

import websockets

from squatcount.replay import ReplayClock
from squatcount.server import SquatServer
from squatcount.session import SquatSession

from synthetic_motion import STAND, segment, squat_cycle


def _cmd(action, **extra):
    msg = {"type": "cmd", "action": action}
    msg.update(extra)
    return json.dumps(msg)


class SquatServerMessageTests(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self) -> None:
        self.clock = ReplayClock()
        self.tmp = tempfile.TemporaryDirectory()
        self.server = SquatServer(SquatSession(clock=self.clock, sensitivity=5.0, combinator="all"),
                                  record_dir=self.tmp.name)

    async def asyncTearDown(self) -> None:
        self.tmp.cleanup()

    def _stream(self, steps):
        for dt, accel, beta in steps:
            self.clock.advance(dt)
            self.server.handle_message(json.dumps({"type": "motion", "x": 0.0, "y": accel, "z": 1.0}))
            self.server.handle_message(json.dumps({"type": "orientation", "alpha": 0.0, "beta": beta, "gamma": 0.0}))

    async def test_start_ack(self) -> None:
        (reply,) = self.server.handle_message(_cmd("start"))
        self.assertEqual(reply["type"], "ack")
        self.assertTrue(reply["ok"])
        self.assertTrue(reply["tracking"])

    async def test_streamed_squat_queues_rep_event(self) -> None:
        self.server.handle_message(_cmd("start"))
        hold = self.server.session.params.min_action_time + 0.2
        self._stream(segment(1.0, STAND))
        self._stream(squat_cycle(hold_squat=hold))

        self.assertEqual(self.server.session.count, 1)
        msg = self.server.outbox.get_nowait()
        self.assertEqual(msg["type"], "rep_event")
        self.assertEqual(msg["rep"], 1)
        self.assertTrue(self.server.outbox.empty())

    async def test_channel_sample_messages(self) -> None:
        self.server.handle_message(_cmd("start"))
        self.server.handle_message(json.dumps({"type": "sample", "channel": "orientation", "value": 33.0}))
        self.server.handle_message(json.dumps({"type": "sample", "channel": "gyro", "value": 1.0}))
        self.assertEqual(self.server.session.buffer.values("orientation"), (33.0,))

    async def test_invalid_sensitivity_is_rejected(self) -> None:
        (reply,) = self.server.handle_message(_cmd("sensitivity", value="fast"))
        self.assertFalse(reply["ok"])
        (reply,) = self.server.handle_message(_cmd("sensitivity", value=8))
        self.assertTrue(reply["ok"])
        self.assertEqual(reply["params"]["sensitivity"], 8.0)

    async def test_sensor_error_blocks_start(self) -> None:
        with self.assertLogs("squatcount.session", level="ERROR"):
            self.server.handle_message(_cmd("sensor_error", reason="permission denied"))
        with self.assertLogs("squatcount.session", level="WARNING"):
            (reply,) = self.server.handle_message(_cmd("start"))
        self.assertFalse(reply["ok"])
        self.assertEqual(reply["reason"], "permission denied")

    async def test_reset_and_status(self) -> None:
        self.server.handle_message(_cmd("start"))
        (reply,) = self.server.handle_message(_cmd("reset"))
        self.assertEqual(reply["reps"], 0)
        (status,) = self.server.handle_message(_cmd("status"))
        self.assertEqual(status["type"], "status")
        self.assertEqual(status["total_reps"], 0)
        self.assertFalse(status["tracking"])
        self.assertIsNone(status["live"]["smoothed_beta"])

    async def test_status_carries_live_readout(self) -> None:
        self.server.handle_message(_cmd("start"))
        self._stream(segment(0.2, STAND))
        (status,) = self.server.handle_message(_cmd("status"))
        self.assertEqual(status["live"]["latest_accel_y"], STAND[0])
        self.assertAlmostEqual(status["live"]["smoothed_beta"], STAND[1])

    async def test_recording_commands(self) -> None:
        (reply,) = self.server.handle_message(_cmd("record_stop"))
        self.assertFalse(reply["ok"])

        self.server.handle_message(_cmd("record_start"))
        self._stream(segment(0.2, STAND))
        (reply,) = self.server.handle_message(_cmd("record_stop"))
        self.assertTrue(reply["ok"])
        self.assertGreater(reply["samples"], 0)
        with open(reply["file"], encoding="utf-8") as f:
            self.assertEqual(len(json.load(f)), reply["samples"])

    async def test_garbage_is_ignored(self) -> None:
        self.assertEqual(self.server.handle_message("not json"), [])
        self.assertEqual(self.server.handle_message("[1, 2]"), [])
        (reply,) = self.server.handle_message(_cmd("fly"))
        self.assertEqual(reply["error"], "unknown_action")


class SquatServerOutsideLoopTests(unittest.TestCase):
    def test_built_before_loop_delivers_rep_inside_loop(self) -> None:
        clock = ReplayClock()
        server = SquatServer(SquatSession(clock=clock, sensitivity=5.0, combinator="all"))

        async def stream_and_collect():
            server.handle_message(_cmd("start"))
            hold = server.session.params.min_action_time + 0.2
            for dt, accel, beta in list(segment(1.0, STAND)) + list(squat_cycle(hold_squat=hold)):
                clock.advance(dt)
                server.handle_message(json.dumps({"type": "motion", "x": 0.0, "y": accel, "z": 1.0}))
                server.handle_message(json.dumps({"type": "orientation", "alpha": 0.0, "beta": beta, "gamma": 0.0}))
            return await asyncio.wait_for(server.outbox.get(), 5)

        msg = asyncio.run(stream_and_collect())
        self.assertEqual(msg["type"], "rep_event")
        self.assertEqual(msg["rep"], 1)


class SquatServerSocketTests(unittest.IsolatedAsyncioTestCase):
    async def test_client_receives_status_then_ack(self) -> None:
        server = SquatServer(SquatSession())
        async with websockets.serve(server.handle_client, "127.0.0.1", 0) as ws_server:
            port = next(iter(ws_server.sockets)).getsockname()[1]
            async with websockets.connect(f"ws://127.0.0.1:{port}") as client:
                first = json.loads(await asyncio.wait_for(client.recv(), 5))
                self.assertEqual(first["type"], "status")

                await client.send(_cmd("start"))
                ack = json.loads(await asyncio.wait_for(client.recv(), 5))
                self.assertEqual(ack["action"], "start")
                self.assertTrue(ack["ok"])
        self.assertTrue(server.session.tracking)


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
