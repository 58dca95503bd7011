#!/usr/bin/env python3
"""TubeGate - API gateway between the video-tube client and the upstream movies API."""

import argparse
import asyncio
import logging
import signal

import uvicorn

from config import load_config, Config
from version import __version__
from web.app import create_app

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger("tubegate")


class TubeGate:
    """Main orchestrator - builds the FastAPI app and runs it under uvicorn."""

    def __init__(self, config: Config):
        self.config = config
        self.app = None
        self.server = None

    def setup(self) -> None:
        """Initialize all components."""
        self.app = create_app(self.config)
        logger.info(
            "Web app initialized (upstream=%s, default limit=%d, country=%s)",
            self.config.upstream.base_url,
            self.config.upstream.default_limit,
            self.config.upstream.default_country,
        )

    async def run(self) -> None:
        """Start everything."""
        self.setup()
        config = uvicorn.Config(
            self.app,
            host=self.config.web.host,
            port=self.config.web.port,
            log_level="info",
        )
        self.server = uvicorn.Server(config)
        logger.info("TubeGate %s listening on %s:%d", __version__,
                    self.config.web.host, self.config.web.port)
        try:
            await self.server.serve()
        except asyncio.CancelledError:
            logger.info("Server cancelled")

    async def stop(self) -> None:
        """Stop all components."""
        if self.server:
            self.server.should_exit = True
        logger.info("TubeGate stopped")


async def main() -> None:
    parser = argparse.ArgumentParser(description="TubeGate")
    parser.add_argument("-c", "--config", help="Path to config file", default=None)
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose logging")
    args = parser.parse_args()

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    config = load_config(args.config)
    app = TubeGate(config)

    loop = asyncio.get_running_loop()

    def signal_handler():
        asyncio.create_task(app.stop())

    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, signal_handler)
        except NotImplementedError:
            signal.signal(sig, lambda s, f: signal_handler())

    try:
        await app.run()
    except KeyboardInterrupt:
        await app.stop()


def cli() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    cli()
