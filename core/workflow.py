# -*- coding: utf-8 -*-
"""验证流程 — 解析消息 → 获取公钥 → 过期检查 → 验证签名

状态机:
    Idle ──verify──▶ Loading ──▶ Success / Expired / Error ──▶ Idle

每一步都返回新的 Session 值，不修改共享字段；
同一时刻只允许一个流程在运行（loading 标志 + 实例内 busy 标志）。
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Awaitable, Callable, Optional

from core.config import CACHE_HIT_DELAY, DEFAULT_EMAIL, DEFAULT_KEYSERVER
from core.keyserver import KeyCache, SessionKeyCache, fetch_pubkey
from core.log import get_logger
from core.pgp_verify import (
    describe_key, is_expired, key_expiration, load_key, parse_cleartext,
    verify_cleartext,
)

logger = get_logger('workflow')

MSG_PARSE_FAILED  = 'Could not parse message'
MSG_FETCH_FAILED  = 'Could not fetch pubkey'
MSG_VERIFY_FAILED = 'Could not verify message'
MSG_EXPIRED       = 'Public key expired or revoked'
MSG_VERIFIED      = 'Signature verified'


class OutcomeKind(str, Enum):
    SUCCESS = 'success'
    EXPIRED = 'expired'
    ERROR   = 'error'


@dataclass(frozen=True)
class Outcome:
    """一次验证的结果。

    expires_at: datetime / NEVER（永不过期）/ None（已吊销，仅 expired）
    """
    kind: OutcomeKind
    message: str
    fingerprint: Optional[str] = None
    expires_at: object = None

    @classmethod
    def success(cls, fingerprint: str, expires_at) -> 'Outcome':
        return cls(OutcomeKind.SUCCESS, MSG_VERIFIED, fingerprint, expires_at)

    @classmethod
    def expired(cls, fingerprint: str, expires_at) -> 'Outcome':
        return cls(OutcomeKind.EXPIRED, MSG_EXPIRED, fingerprint, expires_at)

    @classmethod
    def error(cls, message: str) -> 'Outcome':
        return cls(OutcomeKind.ERROR, message)


@dataclass(frozen=True)
class Session:
    """表单状态快照"""
    keyserver: str = DEFAULT_KEYSERVER
    email: str = DEFAULT_EMAIL
    message: str = ''
    loading: bool = False
    result: Optional[Outcome] = None

    @classmethod
    def initial(cls, keyserver: str = DEFAULT_KEYSERVER,
                email: str = DEFAULT_EMAIL) -> 'Session':
        return cls(keyserver=keyserver, email=email)

    def with_input(self, email: str, message: str) -> 'Session':
        return replace(self, email=email, message=message)

    def start(self) -> 'Session':
        return replace(self, loading=True, result=None)

    def finish(self, outcome: Outcome) -> 'Session':
        return replace(self, loading=False, result=outcome)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class VerifyWorkflow:
    """验证流程编排。

    Args:
        cache:       KeyCache 实现，默认进程内字典
        fetch:       协程 fetch(keyserver, email) -> armored 文本
        clock:       返回当前 UTC 时间，用于过期判断
        cache_delay: 命中缓存时的固定等待（秒）
    """

    def __init__(self, cache: Optional[KeyCache] = None,
                 fetch: Callable[[str, str], Awaitable[str]] = fetch_pubkey,
                 clock: Callable[[], datetime] = _utc_now,
                 cache_delay: float = CACHE_HIT_DELAY):
        self._cache = cache if cache is not None else SessionKeyCache()
        self._fetch = fetch
        self._clock = clock
        self._cache_delay = cache_delay
        self._busy = False

    @property
    def cache(self) -> KeyCache:
        return self._cache

    @property
    def busy(self) -> bool:
        return self._busy

    async def run(self, session: Session) -> Session:
        """执行一次验证，返回 loading=False 且带结果的新 Session。

        session 正在 loading 或已有流程在运行时直接原样返回。
        """
        if session.loading or self._busy:
            logger.debug("verification already running, ignored")
            return session

        self._busy = True
        loading = session.start()
        try:
            outcome = await self._verify(loading)
        except Exception:
            logger.exception("unexpected failure during verification")
            outcome = Outcome.error(MSG_VERIFY_FAILED)
        finally:
            self._busy = False
        logger.info("verification finished: %s", outcome.kind.value)
        return loading.finish(outcome)

    async def _verify(self, session: Session) -> Outcome:
        logger.info("verifying message for %s", session.email)

        # ── 1. 解析消息 ──────────────────────────────────────
        try:
            message = await asyncio.to_thread(parse_cleartext, session.message)
        except Exception as e:
            logger.warning("message parse failed: %s", e)
            return Outcome.error(MSG_PARSE_FAILED)

        # ── 2. 获取公钥 ──────────────────────────────────────
        try:
            key = await self._resolve_key(session.keyserver, session.email)
        except Exception as e:
            logger.warning("pubkey fetch failed for %s: %s: %s",
                           session.email, type(e).__name__, e)
            return Outcome.error(MSG_FETCH_FAILED)

        info = describe_key(key)
        fingerprint = info['fingerprint']
        logger.info("pubkey %s %s [%s]", info['key_id'],
                    ', '.join(info['user_ids']) or '-', info['key_algo'])

        # ── 3. 过期 / 吊销检查 ───────────────────────────────
        expiration = key_expiration(key)
        if is_expired(expiration, self._clock()):
            logger.info("pubkey %s expired or revoked (%r)",
                        fingerprint, expiration)
            return Outcome.expired(fingerprint, expiration)

        # ── 4. 验证签名 ──────────────────────────────────────
        try:
            await asyncio.to_thread(verify_cleartext, message, key)
        except Exception as e:
            logger.warning("signature verification failed: %s", e)
            return Outcome.error(MSG_VERIFY_FAILED)

        logger.info("signature verified, signers: %s",
                    ', '.join(sorted(message.signers)))
        return Outcome.success(fingerprint, expiration)

    async def _resolve_key(self, keyserver: str, email: str):
        armored = self._cache.get(email)
        if armored:
            logger.debug("pubkey for %s found in cache", email)
            await asyncio.sleep(self._cache_delay)
            return await asyncio.to_thread(load_key, armored)

        logger.debug("fetching pubkey for %s from %s", email, keyserver)
        armored = await self._fetch(keyserver, email)
        # 先写缓存再解析：同一邮箱在本次会话内只请求一次，错误正文也不例外
        self._cache.set(email, armored)
        return await asyncio.to_thread(load_key, armored)
