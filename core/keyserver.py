# -*- coding: utf-8 -*-
"""公钥获取 — keys.openpgp.org VKS 接口 + 会话级缓存

    GET {keyserver}/vks/v1/by-email/{email}  →  Armored 公钥文本

不重试、不校验状态码与 Content-Type；超时由 aiohttp.ClientTimeout 控制。
"""

from __future__ import annotations

import urllib.parse
from typing import Dict, Optional, Protocol

import aiohttp

from core.config import FETCH_TIMEOUT, USER_AGENT
from core.log import get_logger

logger = get_logger('keyserver')


# ══════════════════════════════════════════════════════════════
#  缓存
# ══════════════════════════════════════════════════════════════

class KeyCache(Protocol):
    """邮箱 → Armored 公钥文本"""

    def get(self, email: str) -> Optional[str]: ...

    def set(self, email: str, armored: str) -> None: ...


class SessionKeyCache:
    """进程内字典缓存：无上限、不淘汰，随程序退出清空。"""

    def __init__(self):
        self._data: Dict[str, str] = {}

    def get(self, email: str) -> Optional[str]:
        return self._data.get(email)

    def set(self, email: str, armored: str) -> None:
        self._data[email] = armored

    def clear(self):
        self._data.clear()

    def __contains__(self, email):
        return email in self._data

    def __len__(self):
        return len(self._data)


# ══════════════════════════════════════════════════════════════
#  HTTP 获取
# ══════════════════════════════════════════════════════════════

def pubkey_url(keyserver: str, email: str) -> str:
    """拼接 VKS by-email 查询地址，邮箱做 URL 编码（保留 @）。"""
    return (f"{keyserver.rstrip('/')}/vks/v1/by-email/"
            f"{urllib.parse.quote(email.strip(), safe='@')}")


async def _get_text(session, url: str, timeout: float) -> str:
    async with session.get(
        url,
        timeout=aiohttp.ClientTimeout(total=timeout),
        headers={
            'Accept': 'application/pgp-keys',
            'User-Agent': USER_AGENT,
        },
    ) as resp:
        if resp.status >= 400:
            logger.warning("HTTP %s from %s", resp.status, url)
        return await resp.text(errors='replace')


async def fetch_pubkey(keyserver: str, email: str, *,
                       session=None, timeout: float = FETCH_TIMEOUT) -> str:
    """从密钥服务器按邮箱获取 Armored 公钥文本。

    session 为空时临时创建 aiohttp.ClientSession。
    无论状态码都返回响应正文（404 等错误页在解析公钥时失败）；
    网络错误 / 超时原样抛出。
    """
    url = pubkey_url(keyserver, email)
    logger.info("GET %s", url)
    if session is not None:
        return await _get_text(session, url, timeout)
    async with aiohttp.ClientSession() as own_session:
        return await _get_text(own_session, url, timeout)
