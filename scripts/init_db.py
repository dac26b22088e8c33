"""
Database initialization script - indexes for SMS confirmation

Run once (or after changing SMS_CONFIRMATION_KEYS):
    python scripts/init_db.py
"""

import asyncio
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from app.core.config import validate_settings
from app.core.logging import setup_logging, get_logger
from app.db.indexes import create_indexes
from app.db.mongo import (
    check_database_health,
    close_mongo_connection,
    connect_to_mongo,
    get_accounts_collection,
)

logger = get_logger(__name__)


async def main():
    """Create indexes and print what exists afterwards"""
    validate_settings()
    await connect_to_mongo()

    try:
        if not await check_database_health():
            logger.error("MongoDB is not reachable, no indexes created")
            return

        await create_indexes()

        indexes = await get_accounts_collection().index_information()
        for name, spec in indexes.items():
            logger.info(f"  {name}: {spec.get('key')}")

    finally:
        await close_mongo_connection()


if __name__ == "__main__":
    setup_logging()
    asyncio.run(main())
