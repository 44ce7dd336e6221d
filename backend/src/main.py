#!/usr/bin/env python3
"""
Liga Livescore Service - Main Entry Point

Polls API-Football around kickoff and writes fixture status and goals to
Supabase, where clients pick them up through the realtime fixture feed.
"""

import asyncio
import logging
import signal
import sys
from pathlib import Path

# Load .env from backend directory before Config() is used
from dotenv import load_dotenv
load_dotenv(Path(__file__).resolve().parent.parent / ".env")

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent))

from api_football.client import APIFootballClient
from config import Config
from database.supabase_client import SupabaseClient
from refresh.livescore import LivescoreSync
from utils.logger import setup_logging

logger = logging.getLogger(__name__)


class LivescoreService:
    """Main service class for livescore sync."""

    def __init__(self):
        self.config = Config()
        self.sync = None
        self.running = False

    async def start(self):
        """Start the sync service."""
        logger.info("Starting Liga Livescore Service", extra={
            "version": "1.0.0",
            "environment": self.config.environment
        })

        try:
            self.sync = LivescoreSync(
                self.config,
                SupabaseClient(self.config),
                APIFootballClient(self.config),
            )

            loop = asyncio.get_running_loop()
            for sig in (signal.SIGTERM, signal.SIGINT):
                loop.add_signal_handler(sig, self._handle_shutdown, sig)

            self.running = True
            await self.sync.run()

        except Exception as e:
            logger.error("Fatal error in livescore service", extra={
                "error": str(e),
                "error_type": type(e).__name__
            }, exc_info=True)
            raise

    def _handle_shutdown(self, signum):
        """Handle shutdown signals gracefully."""
        logger.info("Received shutdown signal", extra={"signal": signum})
        self.running = False
        if self.sync:
            asyncio.create_task(self.sync.shutdown())


async def main():
    """Main entry point."""
    setup_logging()

    service = LivescoreService()
    try:
        await service.start()
    except KeyboardInterrupt:
        logger.info("Service interrupted by user")
    except Exception as e:
        logger.error("Service crashed", extra={"error": str(e)}, exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    asyncio.run(main())
