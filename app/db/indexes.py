"""
app/db/indexes.py

Purpose: Database index management

- Fast lookup of an account by its outstanding confirmation token
- Indexes on the configured confirmation keys
"""

from typing import Optional, Sequence

from pymongo import ASCENDING

from app.core.config import settings
from app.db.mongo import get_accounts_collection
from app.core.logging import get_logger

logger = get_logger(__name__)


async def create_indexes(confirmation_keys: Optional[Sequence[str]] = None):
    """
    Creates all necessary database indexes.
    This function is idempotent - safe to run multiple times.
    """
    keys = list(confirmation_keys or settings.SMS_CONFIRMATION_KEYS)

    try:
        accounts = get_accounts_collection()

        logger.info("Creating database indexes...")

        # Only accounts with an outstanding token are indexed. Uniqueness is
        # checked at generation time, not enforced here.
        await accounts.create_index(
            [("confirmation_token", ASCENDING)],
            name="confirmation_token_idx",
            partialFilterExpression={"confirmation_token": {"$type": "string"}}
        )
        logger.debug("Created partial index on accounts.confirmation_token")

        # Lookup by confirmation keys (send_token_for)
        await accounts.create_index(
            [(key, ASCENDING) for key in keys],
            name="confirmation_keys_idx"
        )
        logger.debug(f"Created index on accounts.{'+'.join(keys)}")

        account_indexes = await accounts.index_information()
        logger.info(f"All database indexes created successfully (accounts={len(account_indexes)})")

    except Exception as e:
        logger.error(f"Failed to create indexes: {str(e)}", exc_info=True)
        raise


if __name__ == "__main__":
    """
    Run this script directly to create indexes manually.
    """
    import asyncio
    from app.db.mongo import connect_to_mongo, close_mongo_connection

    async def main():
        await connect_to_mongo()
        await create_indexes()
        await close_mongo_connection()

    asyncio.run(main())
