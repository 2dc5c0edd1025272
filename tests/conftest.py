from datetime import timedelta

import pgpy
import pytest
from pgpy.constants import (
    EllipticCurveOID, HashAlgorithm, KeyFlags, PubKeyAlgorithm,
)


def make_key(email, expires_in=None):
    key = pgpy.PGPKey.new(PubKeyAlgorithm.EdDSA, EllipticCurveOID.Ed25519)
    uid = pgpy.PGPUID.new('Test User', email=email)
    options = {
        'usage': {KeyFlags.Sign, KeyFlags.Certify},
        'hashes': [HashAlgorithm.SHA256, HashAlgorithm.SHA512],
        'primary': True,
    }
    if expires_in is not None:
        options['key_expiration'] = expires_in
    key.add_uid(uid, **options)
    return key


def sign_cleartext(key, text):
    msg = pgpy.PGPMessage.new(text, cleartext=True)
    msg |= key.sign(msg)
    return str(msg)


class FakeKeyserver:
    """Async stand-in for fetch_pubkey that records every lookup."""

    def __init__(self, keys=None):
        self.keys = dict(keys or {})
        self.calls = []

    async def __call__(self, keyserver, email):
        self.calls.append((keyserver, email))
        if email not in self.keys:
            return f"No key found for email address {email}"
        return self.keys[email]


@pytest.fixture(scope='session')
def alice():
    return make_key('alice@example.com')


@pytest.fixture(scope='session')
def bob():
    return make_key('bob@example.com', expires_in=timedelta(days=1))


@pytest.fixture(scope='session')
def signed_by_alice(alice):
    return sign_cleartext(alice, 'hello world')


@pytest.fixture
def keyserver():
    return FakeKeyserver


@pytest.fixture(scope='session')
def sign():
    return sign_cleartext


@pytest.fixture(scope='session')
def new_key():
    return make_key
