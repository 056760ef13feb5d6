"""
SquatCount WebSocket server.

Phones (or any client that can read device-motion and device-orientation
events) stream raw readings over a WebSocket; the server runs them through
one SquatSession and broadcasts rep events and status to every client.

Client -> server:
    {"type": "motion", "x": .., "y": .., "z": ..}
    {"type": "orientation", "alpha": .., "beta": .., "gamma": ..}
    {"type": "sample", "channel": "acceleration"|"orientation", "value": ..}
    {"type": "cmd", "action": "start"|"pause"|"toggle"|"reset"|"status"
                            |"sensitivity"|"combinator"|"sensor_error"
                            |"sensor_ready"|"record_start"|"record_stop", ...}

Server -> client:
    {"type": "ack", "action": .., "ok": ..}
    {"type": "rep_event", "rep": .., "t": .., "tempo_sec": ..}
    {"type": "status", ...}
"""

import asyncio
import json
import logging
import os
from typing import List, Optional

import websockets

from . import config
from .buffer import Channel
from .recorder import MotionRecorder, default_filename
from .session import SquatSession

logger = logging.getLogger(__name__)

RECORD_DIR = os.getenv("SQUATCOUNT_RECORD_DIR", os.path.join(os.getcwd(), "recordings"))


def is_command_message(msg: dict) -> bool:
    return msg.get("type") in ("cmd", "command")


class SquatServer:
    """
    Owns the session, the connected clients and the outgoing message queue.

    All samples are applied from the event loop thread in arrival order.
    Rep feedback is queued and sent by a separate task so slow clients never
    hold up detection.
    """

    def __init__(self, session: Optional[SquatSession] = None, record_dir: str = RECORD_DIR):
        self.session = session or SquatSession()
        self.session.feedback = self._feedback
        self.recorder = MotionRecorder(clock=self.session.clock)
        self.record_dir = record_dir
        self.clients = set()
        self.outbox: asyncio.Queue = asyncio.Queue()

    # -------------------------------------------------------------------------
    # Feedback / status
    # -------------------------------------------------------------------------

    def _feedback(self, count: int):
        events = self.session.events
        if events and events[-1].rep == count:
            msg = events[-1].as_dict()
        else:
            msg = {"type": "rep_event", "rep": count}
        self.outbox.put_nowait(msg)

    def status_message(self) -> dict:
        msg = {"type": "status"}
        msg.update(self.session.summary())
        msg["recording"] = bool(self.recorder.recording)
        return msg

    async def broadcast(self, msg: dict):
        if not self.clients:
            return
        data = json.dumps(msg)
        dead = []
        for ws in list(self.clients):
            try:
                await ws.send(data)
            except websockets.exceptions.ConnectionClosed:
                dead.append(ws)
        for ws in dead:
            self.clients.discard(ws)

    async def feedback_loop(self):
        while True:
            msg = await self.outbox.get()
            await self.broadcast(msg)

    async def status_loop(self, interval: float = config.STATUS_INTERVAL_SEC):
        while True:
            await asyncio.sleep(interval)
            if self.recorder.recording:
                self.recorder.tick()
            if self.clients:
                await self.broadcast(self.status_message())

    # -------------------------------------------------------------------------
    # Message handling
    # -------------------------------------------------------------------------

    def _ack(self, action, ok=True, **extra) -> dict:
        msg = {"type": "ack", "action": action, "ok": ok}
        msg.update(extra)
        return msg

    def handle_sample(self, msg: dict):
        kind = msg.get("type")
        if kind == "motion":
            self.recorder.on_motion(msg.get("x"), msg.get("y"), msg.get("z"))
            self.session.on_motion(msg.get("y"))
        elif kind == "orientation":
            self.recorder.on_orientation(msg.get("alpha"), msg.get("beta"), msg.get("gamma"))
            self.session.on_orientation(msg.get("beta"))
        elif kind == "sample":
            try:
                channel = Channel(msg.get("channel"))
            except ValueError:
                return
            self.session.on_sample(channel, msg.get("value"))
        if self.recorder.recording:
            self.recorder.tick()

    def handle_command(self, msg: dict) -> List[dict]:
        action = msg.get("action")
        session = self.session

        if action == "start":
            ok = session.start()
            extra = {} if ok else {"error": "sensor_unavailable", "reason": session.unavailable_reason}
            return [self._ack(action, ok, tracking=session.tracking, **extra)]

        if action in ("pause", "stop"):
            session.pause()
            return [self._ack(action, tracking=session.tracking, reps=int(session.count))]

        if action == "toggle":
            tracking = session.toggle()
            return [self._ack(action, tracking=tracking, status=session.status)]

        if action == "reset":
            session.reset()
            return [self._ack(action, reps=0)]

        if action == "sensitivity":
            try:
                params = session.set_sensitivity(msg.get("value"))
            except ValueError as e:
                return [self._ack(action, False, error=str(e))]
            return [self._ack(action, params=params.as_dict())]

        if action == "combinator":
            try:
                session.set_combinator(msg.get("value", ""))
            except ValueError as e:
                return [self._ack(action, False, error=str(e))]
            return [self._ack(action, combinator=session.machine.guards.name)]

        if action == "sensor_error":
            session.mark_unavailable(msg.get("reason") or "sensor unavailable")
            return [self._ack(action, status=session.status)]

        if action == "sensor_ready":
            session.mark_available()
            return [self._ack(action, status=session.status)]

        if action == "record_start":
            self.recorder.begin()
            return [self._ack(action)]

        if action == "record_stop":
            if not self.recorder.recording:
                return [self._ack(action, False, error="not_recording")]
            self.recorder.stop()
            path = self.recorder.save(os.path.join(self.record_dir, default_filename()))
            return [self._ack(action, file=path, samples=len(self.recorder.records))]

        if action == "status":
            return [self.status_message()]

        return [self._ack(action, False, error="unknown_action")]

    def handle_message(self, raw) -> List[dict]:
        """Apply one client message; returns direct replies for the sender."""
        try:
            msg = json.loads(raw)
        except (TypeError, ValueError):
            return []
        if not isinstance(msg, dict):
            return []
        if is_command_message(msg):
            return self.handle_command(msg)
        self.handle_sample(msg)
        return []

    async def handle_client(self, ws):
        self.clients.add(ws)
        logger.info("Client connected (%d total)", len(self.clients))
        try:
            await ws.send(json.dumps(self.status_message()))
            async for raw in ws:
                for reply in self.handle_message(raw):
                    await ws.send(json.dumps(reply))
        except websockets.exceptions.ConnectionClosed:
            pass
        finally:
            self.clients.discard(ws)
            logger.info("Client disconnected")

    # -------------------------------------------------------------------------
    # Main
    # -------------------------------------------------------------------------

    async def run(self, host: str = config.HOST, port: int = config.PORT,
                  stop: Optional[asyncio.Event] = None):
        stop = stop or asyncio.Event()
        tasks = [
            asyncio.ensure_future(self.feedback_loop()),
            asyncio.ensure_future(self.status_loop()),
        ]
        server = await websockets.serve(
            self.handle_client, host, port,
            ping_interval=20,
            ping_timeout=20
        )
        try:
            await stop.wait()
        finally:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            server.close()
            await server.wait_closed()
