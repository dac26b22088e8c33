from datetime import datetime, timezone
from types import SimpleNamespace

import pytest

from app.core.exceptions import ConcurrentUpdateError
from app.models.account import Account
from app.services.account_service import MongoAccountLookup


def _matches(document, query):
    for key, expected in query.items():
        actual = document.get(key)
        if isinstance(expected, dict) and "$in" in expected:
            if actual not in expected["$in"]:
                return False
        elif actual != expected:
            return False
    return True


class FakeCollection:
    """Just enough of a motor collection for MongoAccountLookup."""

    def __init__(self, documents=None):
        self.documents = [dict(doc) for doc in (documents or [])]

    async def find_one(self, query):
        for document in self.documents:
            if _matches(document, query):
                return dict(document)
        return None

    async def count_documents(self, query, limit=0):
        return len([doc for doc in self.documents if _matches(doc, query)][: limit or None])

    async def insert_one(self, document):
        document = dict(document)
        document["_id"] = len(self.documents) + 1
        self.documents.append(document)
        return SimpleNamespace(inserted_id=document["_id"])

    async def find_one_and_update(self, query, update, return_document=None):
        for document in self.documents:
            if _matches(document, query):
                document.update(update.get("$set", {}))
                for key, amount in update.get("$inc", {}).items():
                    document[key] = (document.get(key) or 0) + amount
                return dict(document)
        return None


SENT_AT = datetime(2026, 2, 1, 8, 0, tzinfo=timezone.utc)


@pytest.fixture
def collection():
    return FakeCollection([
        {"_id": 1, "phone": "+15550001111", "email": "ana@example.com", "confirmation_token": "AB12C",
         "confirmation_sent_at": SENT_AT, "confirmation_attempt_count": 1},
        {"_id": 2, "phone": "+15550002222", "confirmed_at": SENT_AT, "version": 3},
    ])


@pytest.fixture
def lookup(collection):
    return MongoAccountLookup(collection)


@pytest.mark.asyncio
async def test_find_by_keys(lookup):
    account = await lookup.find_by(["email"], {"email": "ana@example.com"})

    assert account.id == 1
    assert account.phone == "+15550001111"
    assert await lookup.find_by(["phone"], {"phone": "+15559999999"}) is None
    assert await lookup.find_by(["phone", "email"], {"phone": "+15550001111"}) is None


@pytest.mark.asyncio
async def test_find_by_token(lookup):
    account = await lookup.find_by_token("AB12C")

    assert account.id == 1
    assert account.confirmation_sent_at == SENT_AT
    assert await lookup.find_by_token("ZZZZZ") is None
    assert await lookup.find_by_token("") is None


@pytest.mark.asyncio
async def test_exists_with_token(lookup):
    assert await lookup.exists_with_token("AB12C")
    assert not await lookup.exists_with_token("ZZZZZ")


@pytest.mark.asyncio
async def test_save_unversioned_document(lookup, collection):
    account = await lookup.find_by_token("AB12C")
    account.confirmation_token = None
    account.confirmed_at = SENT_AT

    await lookup.save(account)

    assert account.version == 1
    stored = collection.documents[0]
    assert stored["confirmation_token"] is None
    assert stored["confirmed_at"] == SENT_AT
    assert stored["version"] == 1
    assert stored["email"] == "ana@example.com"


@pytest.mark.asyncio
async def test_save_detects_concurrent_update(lookup):
    first = await lookup.find_by(["phone"], {"phone": "+15550002222"})
    second = await lookup.find_by(["phone"], {"phone": "+15550002222"})

    first.confirmation_attempt_count = 1
    await lookup.save(first)

    second.confirmation_attempt_count = 1
    with pytest.raises(ConcurrentUpdateError):
        await lookup.save(second)


@pytest.mark.asyncio
async def test_save_inserts_new_account(lookup, collection):
    account = await lookup.save(Account(phone="+15550003333"))

    assert account.id == 3
    assert collection.documents[-1]["phone"] == "+15550003333"
