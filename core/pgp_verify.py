# -*- coding: utf-8 -*-
"""PGP 明文签名消息验证工具

典型用途：
    粘贴一段 -----BEGIN PGP SIGNED MESSAGE----- 明文签名消息，
    配合签名者公钥（keys.openpgp.org 获取）验证消息未被篡改。

依赖: pgpy  (pip install pgpy)
"""

from __future__ import annotations

from datetime import datetime, timezone

import pgpy
from pgpy.errors import PGPError


class PgpVerifyError(Exception):
    """本模块所有错误的基类"""


class MessageParseError(PgpVerifyError):
    """消息不是合法的明文签名块"""


class KeyLoadError(PgpVerifyError):
    """公钥文本无法解析"""


class SignatureError(PgpVerifyError):
    """签名与公钥不匹配或验证失败"""


class _Never:
    """公钥永不过期的哨兵值"""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self):
        return 'NEVER'

    def __reduce__(self):
        return (_Never, ())


NEVER = _Never()


def _load(cls, source: str | bytes):
    """统一加载 PGPKey / PGPMessage，兼容返回 tuple 或单对象两种情况。"""
    result = cls.from_blob(
        source if isinstance(source, (bytes, bytearray))
        else source.strip()
    )
    return result[0] if isinstance(result, tuple) else result


def fmt_fingerprint(fp_str: str) -> str:
    """格式化指纹：每 4 个字符一组，中间用双空格分隔。"""
    s = str(fp_str).replace(' ', '').upper()
    groups = [s[i:i+4] for i in range(0, len(s), 4)]
    mid = len(groups) // 2
    return ' '.join(groups[:mid]) + '  ' + ' '.join(groups[mid:])


def fmt_expiration(value) -> str:
    """NEVER → never expires；None → revoked；datetime → UTC 时间字符串。"""
    if value is NEVER:
        return 'never expires'
    if value is None:
        return 'revoked'
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc)
    return value.strftime('%Y-%m-%d %H:%M:%S UTC')


def _algo_name(enum_val) -> str:
    """将 pgpy 枚举值转为可读名称。"""
    try:
        return enum_val.name
    except AttributeError:
        return str(enum_val)


def parse_cleartext(text: str) -> pgpy.PGPMessage:
    """解析 Armored 明文签名消息。

    空文本、非 PGP 文本、以及不是「已签名明文」的 PGP 块
    均抛出 MessageParseError。
    """
    if not text or not text.strip():
        raise MessageParseError('消息为空')
    try:
        message = _load(pgpy.PGPMessage, text)
    except Exception as e:
        raise MessageParseError(f'无法解析消息: {e}') from e

    if message.type != 'cleartext':
        raise MessageParseError(f'不是明文签名消息 (type={message.type})')
    if not message.is_signed:
        raise MessageParseError('消息不含签名')
    return message


def load_key(armored: str | bytes) -> pgpy.PGPKey:
    """加载公钥（Armored 文本或二进制），失败抛出 KeyLoadError。"""
    if not armored or not armored.strip():
        raise KeyLoadError('公钥内容为空')
    try:
        return _load(pgpy.PGPKey, armored)
    except Exception as e:
        raise KeyLoadError(f'无法解析公钥: {e}') from e


def key_expiration(key: pgpy.PGPKey):
    """返回公钥的过期时间。

    - 存在吊销签名 → None
    - 未设置过期时间 → NEVER
    - 否则 → 带时区的 UTC datetime
    """
    if list(key.revocation_signatures):
        return None
    expires = key.expires_at
    if expires is None:
        return NEVER
    if expires.tzinfo is None:
        expires = expires.replace(tzinfo=timezone.utc)
    return expires


def is_expired(expiration, now: datetime) -> bool:
    """None（已吊销）或严格早于 now 视为过期；NEVER 永不过期。"""
    if expiration is NEVER:
        return False
    return expiration is None or expiration < now


def verify_cleartext(message: pgpy.PGPMessage, key: pgpy.PGPKey):
    """用公钥验证明文签名消息。

    pgpy 只挑选由该公钥（含子密钥）签发的签名逐一验证；
    没有匹配签名或任一签名无效时抛出 SignatureError。
    """
    try:
        verification = key.verify(message)
    except PGPError as e:
        if 'No signatures to verify' in str(e):
            signers = ', '.join(sorted(message.signers)) or '—'
            raise SignatureError(
                f'密钥不匹配: 签名者 Key ID {signers}, '
                f'公钥 Key ID {key.fingerprint.keyid}') from e
        raise SignatureError(f'验证出错: {e}') from e

    if not verification:
        raise SignatureError('签名验证失败: 消息内容与签名不符')
    return verification


def describe_key(key: pgpy.PGPKey) -> dict:
    """提取公钥元信息，供日志输出。"""
    user_ids = []
    for uid in key.userids:
        name  = uid.name  or ''
        email = uid.email or ''
        user_ids.append(f"{name} <{email}>" if email else name)
    fp_str = str(key.fingerprint).replace(' ', '')
    return {
        'fingerprint': fp_str,
        'key_id':      fp_str[-16:],
        'key_algo':    _algo_name(key.key_algorithm),
        'user_ids':    user_ids,
    }
