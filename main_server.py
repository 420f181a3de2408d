#!/usr/bin/env python3
"""
Main entry point for the server application.

This script runs a TeamConnect directory server on a UDP port.
Configuration is loaded from environment variables.
"""

import asyncio
import signal
import sys
import os

from config.settings import Config
from server.server import Server
from utils.logging import setup_logging, get_logger
from utils.exceptions import ConfigurationError

logger = get_logger(__name__)


class ServerApplication:
    """Main application class for server."""

    def __init__(self):
        """Initialize application."""
        self.config = Config()
        self.server: Server = None
        self.shutdown_event = asyncio.Event()

    async def run(self) -> None:
        """
        Run the server application.

        Loads configuration, starts the server and waits for a
        shutdown signal.
        """
        try:
            logger.info("Loading configuration...")
            server_config = self.config.load_server_config()

            logger.info(
                f"Configuration loaded: "
                f"bind={server_config.host}:{server_config.port}, "
                f"teams={server_config.team_names}, "
                f"statuses={server_config.status_names}"
            )

            self.server = Server(server_config)
            await self.server.start()

            logger.info("Server application started successfully")
            logger.info("Press Ctrl+C to stop")

            await self.shutdown_event.wait()

            logger.info("Shutdown signal received, stopping...")
            await self.server.stop()

            logger.info("Server application stopped successfully")
            sys.exit(0)

        except ConfigurationError as e:
            logger.error(f"Configuration error: {e}")
            logger.error(
                "Please check your environment variables. "
                "See .env.example for required configuration."
            )
            sys.exit(1)
        except OSError as e:
            logger.error(f"Could not open server socket: {e}")
            sys.exit(1)
        except KeyboardInterrupt:
            logger.info("Interrupted by user")
        except Exception as e:
            logger.error(f"Unexpected error: {e}", exc_info=True)
            sys.exit(1)

    def handle_shutdown(self, signum, frame):
        """
        Handle shutdown signals.

        Args:
            signum: Signal number
            frame: Current stack frame
        """
        logger.info(f"Received signal {signum}")
        self.shutdown_event.set()


async def main():
    """Main entry point."""
    setup_logging(os.getenv('LOG_LEVEL', 'INFO'))

    logger.info("Starting server application...")

    app = ServerApplication()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(
            sig,
            lambda s=sig: app.handle_shutdown(s, None)
        )

    await app.run()


if __name__ == '__main__':
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        print("\nShutdown complete")
        sys.exit(0)
