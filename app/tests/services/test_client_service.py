import random

import pytest
from sqlalchemy.exc import IntegrityError

from app.core.errors import ValidationFailed
from app.models.client import Client
from app.services.client_service import ClientService
from app.services.identifier_service import is_valid_referral_code_format


class FixedRandom(random.Random):
    def __init__(self, values):
        super().__init__(0)
        self.values = list(values)

    def randint(self, a, b):
        return self.values.pop(0)


def test_register_assigns_referral_code(store, now):
    svc = ClientService(store, rng=FixedRandom([4821]))
    c = svc.register(full_name="Dave Smith", email="Dave@Example.com", phone="09171234567", now=now)

    assert c.referral_code == "DAVE4821"
    assert is_valid_referral_code_format(c.referral_code)
    assert c.email == "dave@example.com"


def test_existing_codes_are_avoided(store, now):
    store.clients.append(Client(full_name="Dave Old", email="old@example.com", referral_code="DAVE1111"))
    svc = ClientService(store, rng=FixedRandom([1111, 2222]))
    c = svc.register(full_name="Dave New", email="new@example.com", phone=None, now=now)
    assert c.referral_code == "DAVE2222"


def test_insert_conflict_retries(store, now):
    class RacingStore(type(store)):
        """A concurrent registration takes the first code between check and insert."""

        def __init__(self):
            super().__init__()
            self.raced = False

        def insert_client(self, client):
            if not self.raced:
                self.raced = True
                self.clients.append(Client(full_name="Other", email="o@example.com", referral_code=client.referral_code))
            return super().insert_client(client)

    racing = RacingStore()
    svc = ClientService(racing, rng=FixedRandom([3333, 3333, 4444]))
    c = svc.register(full_name="Dave", email="dave@example.com", phone=None, now=now)
    assert c.referral_code == "DAVE4444"


@pytest.mark.parametrize(
    "kwargs",
    [
        {"full_name": "  ", "email": "a@example.com", "phone": None},
        {"full_name": "Dave", "email": "nope", "phone": None},
        {"full_name": "Dave", "email": "a@example.com", "phone": "12345"},
    ],
)
def test_invalid_input(store, now, kwargs):
    with pytest.raises(ValidationFailed):
        ClientService(store).register(now=now, **kwargs)


def test_duplicate_email(store, now):
    svc = ClientService(store)
    svc.register(full_name="Dave", email="dave@example.com", phone=None, now=now)
    with pytest.raises(ValidationFailed):
        svc.register(full_name="Dave", email="DAVE@example.com", phone=None, now=now)


def test_concurrent_registration_with_same_email(store, now):
    class RacingStore(type(store)):
        """Another request registers the same email between check and insert."""

        def insert_client(self, client):
            self.clients.append(Client(full_name="Dave", email=client.email, referral_code="DAVE0001"))
            raise IntegrityError("INSERT INTO clients", {}, Exception("duplicate email"))

    racing = RacingStore()
    with pytest.raises(ValidationFailed) as ei:
        ClientService(racing).register(full_name="Dave", email="dave@example.com", phone=None, now=now)
    assert ei.value.context["field"] == "email"
    assert len(racing.clients) == 1
