"""
app/services/account_service.py

Purpose: Account store backed by MongoDB

- Lookup by confirmation keys and by outstanding token
- Token existence checks for the generator
- Version-guarded writes of the verification fields
"""

from typing import Any, Dict, Optional, Sequence

from pymongo import ReturnDocument

from app.core.exceptions import ConcurrentUpdateError
from app.core.logging import get_logger
from app.db.mongo import get_accounts_collection
from app.models.account import Account

logger = get_logger(__name__)


class MongoAccountLookup:
    """
    AccountLookup over a motor collection.

    Args:
        collection: Motor collection (defaults to the configured accounts collection)
    """

    def __init__(self, collection=None):
        self._collection = collection

    @property
    def collection(self):
        # Resolved lazily so the adapter can be built before connect_to_mongo()
        if self._collection is None:
            self._collection = get_accounts_collection()
        return self._collection

    async def find_by(self, keys: Sequence[str], values: Dict[str, Any]) -> Optional[Account]:
        query = {key: values.get(key) for key in keys}
        if any(value is None for value in query.values()):
            return None

        document = await self.collection.find_one(query)
        return Account.from_document(document)

    async def find_by_token(self, token: str) -> Optional[Account]:
        if not token:
            return None

        document = await self.collection.find_one({"confirmation_token": token})
        return Account.from_document(document)

    async def exists_with_token(self, token: str) -> bool:
        count = await self.collection.count_documents({"confirmation_token": token}, limit=1)
        return count > 0

    async def insert(self, account: Account) -> Account:
        """
        Stores a new account document and sets its id.
        """
        result = await self.collection.insert_one(account.to_document())
        account.id = result.inserted_id
        logger.info("Account created", extra={"account_id": str(account.id)})
        return account

    async def save(self, account: Account) -> Account:
        """
        Writes the verification fields if nobody else updated the account
        since it was read.

        Raises:
            ConcurrentUpdateError: if the stored version moved on
        """
        if not account.is_persisted:
            return await self.insert(account)

        query = {"_id": account.id, "version": account.version}
        if account.version == 0:
            # Documents written before versioning have no version field
            query = {"_id": account.id, "version": {"$in": [0, None]}}

        document = await self.collection.find_one_and_update(
            query,
            {
                "$set": account.verification_state(),
                "$inc": {"version": 1}
            },
            return_document=ReturnDocument.AFTER
        )

        if document is None:
            logger.warning(
                "Concurrent update detected",
                extra={"account_id": str(account.id)}
            )
            raise ConcurrentUpdateError(details={"account_id": str(account.id), "version": account.version})

        account.version = document.get("version", account.version + 1)
        return account
