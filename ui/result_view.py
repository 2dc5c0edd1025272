# -*- coding: utf-8 -*-
"""验证结果 → 展示内容的纯映射（不依赖 Qt，便于测试）"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from core.pgp_verify import NEVER, fmt_expiration, fmt_fingerprint
from core.workflow import Outcome, OutcomeKind

# kind → (标题, 背景色, 前景色)
_STYLES = {
    OutcomeKind.SUCCESS: ("Good Signature! 🎉",            '#e6f4ea', '#107c10'),
    OutcomeKind.ERROR:   ("Failed to verify message! 🔥",  '#fce8e6', '#c0392b'),
    OutcomeKind.EXPIRED: ("Public key expired! ⏰",         '#fff8e1', '#856404'),
}


@dataclass(frozen=True)
class RenderedOutcome:
    title: str
    background: str
    foreground: str
    message: Optional[str] = None        # 仅 error 显示
    fingerprint: Optional[str] = None    # success / expired 显示
    expiration: Optional[str] = None     # success / expired 显示


def render_outcome(outcome: Optional[Outcome]) -> Optional[RenderedOutcome]:
    """None 表示结果区隐藏。"""
    if outcome is None:
        return None

    title, bg, fg = _STYLES[outcome.kind]
    if outcome.kind is OutcomeKind.ERROR:
        return RenderedOutcome(title, bg, fg, message=outcome.message)

    fingerprint = fmt_fingerprint(outcome.fingerprint or '')
    if outcome.kind is OutcomeKind.EXPIRED:
        expiration = f"Expires at: {fmt_expiration(outcome.expires_at)}"
    elif outcome.expires_at is NEVER:
        expiration = "Pubkey never expires!"
    else:
        expiration = (f"Public Key expires at: "
                      f"{fmt_expiration(outcome.expires_at)}")
    return RenderedOutcome(title, bg, fg,
                           fingerprint=fingerprint, expiration=expiration)
