"""Entrypoint for the SquatCount WebSocket server."""

import asyncio
import logging

from squatcount import config
from squatcount.server import SquatServer
from squatcount.session import SquatSession


async def main():
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    print("SquatCount Server")
    print(f"WebSocket: ws://{config.HOST}:{config.PORT}")
    print(f"Sensitivity: {config.DEFAULT_SENSITIVITY:.1f}  combinator: {config.COMBINATOR}")

    server = SquatServer(SquatSession())
    await server.run(config.HOST, config.PORT)


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        print("\n--- STOP ---")
