# -*- coding: utf-8 -*-
"""运行配置 — 默认值 + 环境变量覆盖

    PGPVERIFY_KEYSERVER       密钥服务器地址（默认 keys.openpgp.org）
    PGPVERIFY_EMAIL           表单默认邮箱
    PGPVERIFY_FETCH_TIMEOUT   公钥获取超时（秒）
    PGPVERIFY_LOG_LEVEL       日志级别（DEBUG / INFO / WARNING ...）
"""

import os


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name, '').strip()
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        return default
    return value if value > 0 else default


# ── 配置 ──────────────────────────────────────────────────────

DEFAULT_KEYSERVER = (os.environ.get('PGPVERIFY_KEYSERVER', '').strip()
                     or 'https://keys.openpgp.org').rstrip('/')
DEFAULT_EMAIL = os.environ.get('PGPVERIFY_EMAIL', '').strip() or 'li@imlihe.com'

# 命中缓存时的固定延迟，与联网获取保持一致的交互节奏
CACHE_HIT_DELAY = 0.3

FETCH_TIMEOUT = _env_float('PGPVERIFY_FETCH_TIMEOUT', 15.0)
USER_AGENT = 'PGPVerifier/1.0'

LOG_LEVEL = os.environ.get('PGPVERIFY_LOG_LEVEL', '').strip().upper() or 'INFO'
