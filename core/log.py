# -*- coding: utf-8 -*-
"""统一日志 — 所有模块通过 get_logger() 取得 pgpverify.* 下的 logger"""

import logging
import sys
import time

from core.config import LOG_LEVEL

ROOT_NAME = 'pgpverify'


def get_logger(name: str = '') -> logging.Logger:
    """返回 pgpverify 命名空间下的 logger，首次调用时挂载 stderr handler。"""
    root = logging.getLogger(ROOT_NAME)
    if not root.handlers:
        handler = logging.StreamHandler(sys.stderr)
        formatter = logging.Formatter(
            fmt='%(asctime)s %(levelname)-7s %(name)s  %(message)s',
            datefmt='%Y-%m-%dT%H:%M:%SZ',
        )
        formatter.converter = time.gmtime  # UTC 时间戳
        handler.setFormatter(formatter)
        root.addHandler(handler)
        configured = logging.getLevelName(LOG_LEVEL)
        root.setLevel(configured if isinstance(configured, int) else logging.INFO)

    return logging.getLogger(f"{ROOT_NAME}.{name}" if name else ROOT_NAME)
