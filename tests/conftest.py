from datetime import datetime, timedelta, timezone
from itertools import count

import pytest

from app.core.exceptions import ConcurrentUpdateError
from app.models.account import Account
from app.services.sms_service import SmsActivationService
from app.services.token_service import TokenGenerator


T0 = datetime(2026, 1, 15, 12, 0, 0, tzinfo=timezone.utc)


class FakeClock:
    def __init__(self, now=T0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now = self.now + timedelta(seconds=seconds)
        return self.now


class InMemoryAccountLookup:
    """AccountLookup keeping copies, with the same version check as Mongo."""

    def __init__(self):
        self.documents = {}
        self.saves = 0
        self._ids = count(1)

    def add(self, account):
        account.id = next(self._ids)
        self.documents[account.id] = account.model_copy(deep=True)
        return account

    def stored(self, account_id):
        return self.documents[account_id].model_copy(deep=True)

    async def find_by(self, keys, values):
        for document in self.documents.values():
            if all(getattr(document, key, None) == values.get(key) for key in keys):
                return document.model_copy(deep=True)
        return None

    async def find_by_token(self, token):
        for document in self.documents.values():
            if document.confirmation_token == token:
                return document.model_copy(deep=True)
        return None

    async def exists_with_token(self, token):
        return any(doc.confirmation_token == token for doc in self.documents.values())

    async def save(self, account):
        self.saves += 1
        if account.id is None:
            return self.add(account)

        current = self.documents[account.id]
        if current.version != account.version:
            raise ConcurrentUpdateError()

        account.version += 1
        self.documents[account.id] = account.model_copy(deep=True)
        return account


class RecordingDispatcher:
    def __init__(self, result=None):
        self.calls = []
        self.result = result if result is not None else {"success": True, "message_sid": "SM1"}

    async def send(self, phone, body):
        self.calls.append((phone, body))
        return self.result


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def accounts():
    return InMemoryAccountLookup()


@pytest.fixture
def dispatcher():
    return RecordingDispatcher()


@pytest.fixture
def make_service(accounts, dispatcher, clock):
    def factory(**kwargs):
        kwargs.setdefault("confirm_within", timedelta(0))
        kwargs.setdefault("token_valid_for", timedelta(days=1))
        kwargs.setdefault("clock", clock)
        return SmsActivationService(accounts, kwargs.pop("dispatcher", dispatcher), **kwargs)

    return factory


@pytest.fixture
def service(make_service):
    return make_service()


@pytest.fixture
def make_account(accounts):
    def factory(**fields):
        fields.setdefault("phone", "+919876543210")
        return accounts.add(Account(**fields))

    return factory


@pytest.fixture
def token_generator(accounts):
    return TokenGenerator(accounts)
