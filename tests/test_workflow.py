import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from core.keyserver import SessionKeyCache
from core.pgp_verify import NEVER
from core.workflow import (
    MSG_EXPIRED, MSG_FETCH_FAILED, MSG_PARSE_FAILED, MSG_VERIFIED,
    MSG_VERIFY_FAILED, OutcomeKind, Session, VerifyWorkflow,
)

ALICE = 'alice@example.com'
BOB = 'bob@example.com'


def run(workflow, session):
    return asyncio.run(workflow.run(session))


def session_for(email, message):
    return Session.initial(keyserver='https://keys.example.org').with_input(
        email, message)


@pytest.fixture
def server(keyserver, alice, bob):
    return keyserver({
        ALICE: str(alice.pubkey),
        BOB: str(bob.pubkey),
    })


@pytest.fixture
def workflow(server):
    return VerifyWorkflow(fetch=server, cache_delay=0)


def test_valid_signature_never_expiring(workflow, server, alice,
                                        signed_by_alice):
    result = run(workflow, session_for(ALICE, signed_by_alice))

    assert result.loading is False
    assert result.result.kind is OutcomeKind.SUCCESS
    assert result.result.message == MSG_VERIFIED
    assert result.result.fingerprint == str(alice.fingerprint).replace(' ', '')
    assert result.result.expires_at is NEVER
    assert server.calls == [('https://keys.example.org', ALICE)]


def test_valid_signature_with_future_expiration(workflow, bob, sign):
    result = run(workflow, session_for(BOB, sign(bob, 'release 1.2')))

    assert result.result.kind is OutcomeKind.SUCCESS
    assert isinstance(result.result.expires_at, datetime)
    assert result.result.fingerprint


def test_expired_key_reported_before_signature_check(server, signed_by_alice):
    # signed by alice, but the key served for bob has already expired;
    # the expiry check wins over the (mismatched) signature
    later = lambda: datetime.now(timezone.utc) + timedelta(days=2)
    workflow = VerifyWorkflow(fetch=server, clock=later, cache_delay=0)

    result = run(workflow, session_for(BOB, signed_by_alice))

    assert result.result.kind is OutcomeKind.EXPIRED
    assert result.result.message == MSG_EXPIRED
    assert isinstance(result.result.expires_at, datetime)
    assert result.result.expires_at < later()
    assert result.result.fingerprint


@pytest.mark.parametrize('text', [
    '',
    '   \n',
    'hello, this is not pgp',
    '-----BEGIN PGP SIGNED MESSAGE-----\nHash: SHA256\n\ngarbage\n',
])
def test_malformed_message_is_parse_error_without_fetch(workflow, server,
                                                        text):
    result = run(workflow, session_for(ALICE, text))

    assert result.result.kind is OutcomeKind.ERROR
    assert result.result.message == MSG_PARSE_FAILED
    assert server.calls == []
    assert workflow.cache.get(ALICE) is None


def test_unknown_email_is_fetch_error(workflow, server, signed_by_alice):
    email = 'nobody@example.com'

    first = run(workflow, session_for(email, signed_by_alice))
    second = run(workflow, session_for(email, signed_by_alice))

    assert first.result.kind is OutcomeKind.ERROR
    assert first.result.message == MSG_FETCH_FAILED
    assert first.loading is False
    assert second.result.message == MSG_FETCH_FAILED
    assert server.calls == [('https://keys.example.org', email)]


def test_unparseable_key_body_is_cached_for_the_session(
        keyserver, signed_by_alice):
    server = keyserver({ALICE: 'this is not a key'})
    cache = SessionKeyCache()
    workflow = VerifyWorkflow(cache=cache, fetch=server, cache_delay=0)

    first = run(workflow, session_for(ALICE, signed_by_alice))
    second = run(workflow, session_for(ALICE, signed_by_alice))

    assert first.result.message == MSG_FETCH_FAILED
    assert second.result.message == MSG_FETCH_FAILED
    assert cache.get(ALICE) == 'this is not a key'
    assert len(server.calls) == 1


def test_revoked_key_is_expired(keyserver, new_key, sign):
    carol = new_key('carol@example.com')
    signed = sign(carol, 'signed before revocation')
    carol |= carol.revoke(carol)
    server = keyserver({'carol@example.com': str(carol.pubkey)})
    workflow = VerifyWorkflow(fetch=server, cache_delay=0)

    result = run(workflow, session_for('carol@example.com', signed))

    assert result.result.kind is OutcomeKind.EXPIRED
    assert result.result.message == MSG_EXPIRED
    assert result.result.expires_at is None
    assert result.result.fingerprint == str(carol.fingerprint).replace(' ', '')


def test_signature_from_other_key_fails(keyserver, bob, signed_by_alice):
    server = keyserver({ALICE: str(bob.pubkey)})
    workflow = VerifyWorkflow(fetch=server, cache_delay=0)

    result = run(workflow, session_for(ALICE, signed_by_alice))

    assert result.result.kind is OutcomeKind.ERROR
    assert result.result.message == MSG_VERIFY_FAILED


def test_tampered_message_fails(workflow, signed_by_alice):
    tampered = signed_by_alice.replace('hello world', 'hello there')

    result = run(workflow, session_for(ALICE, tampered))

    assert result.result.kind is OutcomeKind.ERROR
    assert result.result.message == MSG_VERIFY_FAILED


def test_repeated_verification_fetches_once(workflow, server,
                                            signed_by_alice):
    for _ in range(3):
        result = run(workflow, session_for(ALICE, signed_by_alice))
        assert result.result.kind is OutcomeKind.SUCCESS

    assert len(server.calls) == 1
    assert workflow.cache.get(ALICE) == server.keys[ALICE]


def test_cache_hit_waits_before_reuse(server, signed_by_alice):
    workflow = VerifyWorkflow(fetch=server, cache_delay=0.05)
    run(workflow, session_for(ALICE, signed_by_alice))

    loop_time = []

    async def timed():
        start = asyncio.get_running_loop().time()
        result = await workflow.run(session_for(ALICE, signed_by_alice))
        loop_time.append(asyncio.get_running_loop().time() - start)
        return result

    result = asyncio.run(timed())
    assert result.result.kind is OutcomeKind.SUCCESS
    assert loop_time[0] >= 0.04
    assert len(server.calls) == 1


def test_loading_session_is_noop(workflow, server, signed_by_alice):
    busy = session_for(ALICE, signed_by_alice).start()

    result = run(workflow, busy)

    assert result is busy
    assert server.calls == []


def test_second_invocation_while_running_is_noop(alice, signed_by_alice):
    calls = []

    async def scenario():
        gate = asyncio.Event()

        async def slow_fetch(keyserver, email):
            calls.append(email)
            await gate.wait()
            return str(alice.pubkey)

        workflow = VerifyWorkflow(fetch=slow_fetch, cache_delay=0)
        session = session_for(ALICE, signed_by_alice)
        first = asyncio.create_task(workflow.run(session))
        while not calls:
            await asyncio.sleep(0.01)

        assert workflow.busy
        second = await workflow.run(session)
        gate.set()
        return session, second, await first, workflow

    session, second, first, workflow = asyncio.run(scenario())

    assert second is session
    assert calls == [ALICE]
    assert first.result.kind is OutcomeKind.SUCCESS
    assert workflow.busy is False


def test_unexpected_failure_still_clears_loading(signed_by_alice):
    async def broken_fetch(keyserver, email):
        return 42  # not text

    workflow = VerifyWorkflow(fetch=broken_fetch, cache_delay=0)
    result = run(workflow, session_for(ALICE, signed_by_alice))

    assert result.loading is False
    assert result.result.kind is OutcomeKind.ERROR
    assert workflow.busy is False
