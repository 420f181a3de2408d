#!/usr/bin/env python3
"""
Main entry point for the interactive client application.

This script registers with a TeamConnect server and offers a small text
menu for sharing a status, changing team and viewing teammates.
Configuration is loaded from environment variables.
"""

import asyncio
import sys
import os

from client.session import ClientSession
from config.settings import Config
from protocol.constants import INACTIVE_STATUS, TEAM_WILDCARD
from utils.logging import setup_logging, get_logger
from utils.exceptions import ConfigurationError, RequestRejectedError, RequestTimeoutError

logger = get_logger(__name__)

MENU = """
Type a number to choose an option:
  [1] Update my status
  [2] Change my team
  [3] Get team status update
  [4] Quit program
"""


class ClientApplication:
    """Main application class for the interactive client."""

    def __init__(self):
        """Initialize application."""
        self.config = Config()
        self.session: ClientSession = None

    async def _prompt(self, text: str) -> str:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, input, text)

    async def _choose(self, title: str, options) -> int:
        """Index of the chosen option, or -1 for an invalid choice."""
        print(title)
        for i, option in enumerate(options):
            print(f" {'[' + str(i + 1) + ']':>4} {option}")
        answer = (await self._prompt("> ")).strip()
        if not answer.isdigit() or not 1 <= int(answer) <= len(options):
            print(f"Invalid selection: {answer}")
            return -1
        return int(answer) - 1

    def _display_header(self) -> None:
        session = self.session
        team = "[none]" if session.team_id == TEAM_WILDCARD else session.team_names[session.team_id]
        status = "[none]" if session.status == INACTIVE_STATUS else session.status_names[session.status]
        print("=" * 59)
        print(f"USER:   {session.display_name:<20} | NET_ID: {session.network_id:<20}")
        print(f"TEAM:   {team:<20} | STATUS: {status:<20}")

    async def _display_team_status(self) -> None:
        if self.session.team_id == TEAM_WILDCARD:
            print("You are not on a team. To get team status updates, join a team.")
            return
        for name, status in await self.session.team_status():
            label = self.session.status_names[status] if status < len(self.session.status_names) else "[none]"
            print(f"  {name:<16} - {label}")

    async def _change_team(self, team: int) -> None:
        name = self.session.team_names[team]
        try:
            await self.session.change_team(team, give_up_on_error=True)
        except RequestRejectedError:
            # The ERROR text was already printed by on_error
            print(f"Could not join {name}, staying on the current team.")
        except RequestTimeoutError:
            print(f"Server did not confirm the move to {name}, staying on the current team.")

    async def _main_loop(self) -> None:
        while True:
            self._display_header()
            choice = (await self._prompt(MENU)).strip()

            if choice == '1':
                status = await self._choose("Type a number to choose a status", self.session.status_names)
                if status >= 0:
                    await self.session.update_status(status)
            elif choice == '2':
                team = await self._choose("Type a number to choose a team", self.session.team_names)
                if team >= 0:
                    await self._change_team(team)
            elif choice == '3':
                await self._display_team_status()
            elif choice == '4':
                return
            else:
                print("Invalid input.")

    async def run(self) -> None:
        """
        Run the client application.

        Loads configuration, registers with the server unless a network ID
        was configured, fetches the server description and runs the menu.
        On quit, tells the server the user has left.
        """
        try:
            client_config = self.config.load_client_config()
            logger.info(
                f"Attempting to connect to server at "
                f"{client_config.server_host}:{client_config.server_port}"
            )

            self.session = ClientSession.from_config(
                client_config,
                on_error=print,
            )
            async with self.session:
                if self.session.is_registered:
                    self.session.display_name = client_config.display_name
                else:
                    await self.session.register(client_config.display_name)
                await self.session.fetch_server_description()

                logger.info(f"Now running TeamConnect client with netID {self.session.network_id}")
                await self._main_loop()

                print("Shutting down TeamConnect client...")
                await self.session.leave()

            print("Shutdown complete. Goodbye.")

        except ConfigurationError as e:
            logger.error(f"Configuration error: {e}")
            logger.error(
                "Please check your environment variables. "
                "See .env.example for required configuration."
            )
            sys.exit(1)
        except RequestTimeoutError as e:
            logger.error(f"Server did not answer: {e}")
            sys.exit(1)
        except (EOFError, KeyboardInterrupt):
            logger.info("Interrupted by user")
        except Exception as e:
            logger.error(f"Unexpected error: {e}", exc_info=True)
            sys.exit(1)


async def main():
    """Main entry point."""
    # stdout belongs to the menu
    setup_logging(os.getenv('LOG_LEVEL', 'WARNING'), stream=sys.stderr)

    app = ClientApplication()
    await app.run()


if __name__ == '__main__':
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        print("\nShutdown complete")
        sys.exit(0)
