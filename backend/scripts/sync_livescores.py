#!/usr/bin/env python3
"""
Run a single livescore sync pass and print the result.

Usage:
    python3 scripts/sync_livescores.py
"""

import asyncio
import json
import sys
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables
load_dotenv(Path(__file__).parent.parent / ".env")

# Add src directory to path
backend_dir = Path(__file__).parent.parent
sys.path.insert(0, str(backend_dir / "src"))

from api_football.client import APIFootballClient
from config import Config
from database.supabase_client import SupabaseClient
from refresh.livescore import LivescoreSync
from utils.logger import setup_logging


async def sync_livescores():
    """Run one sync pass."""
    setup_logging()

    config = Config()
    sync = LivescoreSync(config, SupabaseClient(config), APIFootballClient(config))

    print("🔄 Checking fixtures around kickoff...\n")

    try:
        result = await sync.sync_once()
        print(json.dumps(result.to_dict(), indent=2))
        print(f"\n✅ {result.message}")

    except Exception as e:
        print(f"\n❌ Error during sync: {e}")
        import traceback
        traceback.print_exc()
        sys.exit(1)

    finally:
        await sync.shutdown()


if __name__ == "__main__":
    asyncio.run(sync_livescores())
