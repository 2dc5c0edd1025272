# -*- coding: utf-8 -*-
"""PGP 明文签名验证面板

粘贴 -----BEGIN PGP SIGNED MESSAGE----- 消息 + 签名者邮箱，
自动从密钥服务器获取公钥，显示 验证通过 / 公钥过期 / 验证失败。
"""

from __future__ import annotations

import asyncio

from PyQt5.QtWidgets import (
    QWidget, QVBoxLayout, QHBoxLayout, QLabel, QPushButton,
    QLineEdit, QPlainTextEdit, QFrame, QShortcut,
)
from PyQt5.QtGui import QFont, QKeySequence
from PyQt5.QtCore import Qt, QThread, pyqtSignal

from core.log import get_logger
from core.workflow import (
    MSG_VERIFY_FAILED, Outcome, Session, VerifyWorkflow,
)
from ui.result_view import render_outcome

logger = get_logger('ui')

_MONO = QFont("Consolas", 9)
_MONO.setStyleHint(QFont.Monospace)

_VERIFY_TEXT = "  Verify  "
_BUSY_TEXT   = "验证中…"


# ════════════════════════════════════════════════════════════
#  验证后台线程
# ════════════════════════════════════════════════════════════
class VerifyWorker(QThread):
    done = pyqtSignal(object)   # Session

    def __init__(self, workflow: VerifyWorkflow, session: Session):
        super().__init__()
        self._workflow = workflow
        self._session  = session

    def run(self):
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
        try:
            result = loop.run_until_complete(self._workflow.run(self._session))
        except Exception:
            logger.exception("verify worker crashed")
            result = self._session.finish(Outcome.error(MSG_VERIFY_FAILED))
        finally:
            loop.close()
        self.done.emit(result)


# ════════════════════════════════════════════════════════════
#  结果卡片
# ════════════════════════════════════════════════════════════
class ResultCard(QFrame):
    def __init__(self, parent=None):
        super().__init__(parent)
        self.setObjectName("resultCard")
        lay = QVBoxLayout(self)
        lay.setContentsMargins(14, 10, 14, 12)
        lay.setSpacing(6)

        self._title = QLabel("")
        self._title.setStyleSheet(
            "font-size:16px; font-weight:bold; background:transparent;")
        lay.addWidget(self._title)

        self._message = QLabel("")
        self._message.setWordWrap(True)
        lay.addWidget(self._message)

        self._fp_caption = QLabel("Public Key FingerPrint:")
        lay.addWidget(self._fp_caption)
        self._fp_value = QLabel("")
        self._fp_value.setFont(_MONO)
        self._fp_value.setWordWrap(True)
        self._fp_value.setTextInteractionFlags(Qt.TextSelectableByMouse)
        self._fp_value.setStyleSheet(
            "background:rgba(255,255,255,0.6); border:1px solid #dfe2e8;"
            "border-radius:4px; padding:3px 6px;")
        lay.addWidget(self._fp_value)

        self._expiration = QLabel("")
        lay.addWidget(self._expiration)
        self.hide()

    def show_outcome(self, outcome):
        rendered = render_outcome(outcome)
        if rendered is None:
            self.hide()
            return

        self.setStyleSheet(
            f"#resultCard{{background:{rendered.background}; "
            f"border-radius:8px;}}"
            f"#resultCard QLabel{{color:{rendered.foreground};}}")
        self._title.setText(rendered.title)

        self._message.setVisible(rendered.message is not None)
        self._message.setText(rendered.message or "")

        has_fp = rendered.fingerprint is not None
        self._fp_caption.setVisible(has_fp)
        self._fp_value.setVisible(has_fp)
        self._fp_value.setText(rendered.fingerprint or "")

        self._expiration.setVisible(rendered.expiration is not None)
        self._expiration.setText(rendered.expiration or "")
        self.show()


# ════════════════════════════════════════════════════════════
#  面板
# ════════════════════════════════════════════════════════════
class VerifyPanel(QWidget):
    def __init__(self, workflow: VerifyWorkflow = None, parent=None):
        super().__init__(parent)
        self._workflow = workflow or VerifyWorkflow()
        self._session  = Session.initial()
        self._worker: VerifyWorker | None = None
        self._build_ui()
        self._load_inputs()
        self._apply_session()

    @property
    def session(self) -> Session:
        return self._session

    def _build_ui(self):
        lay = QVBoxLayout(self)
        lay.setContentsMargins(22, 18, 22, 18)
        lay.setSpacing(8)

        title = QLabel("Verify PGP Signed Message")
        title.setStyleSheet("font-size:18px; font-weight:bold; color:#1e2433;")
        lay.addWidget(title)
        lay.addSpacing(4)

        lay.addWidget(QLabel("Keyserver"))
        self._keyserver_in = QLineEdit()
        self._keyserver_in.setReadOnly(True)
        self._keyserver_in.setEnabled(False)
        lay.addWidget(self._keyserver_in)

        lay.addWidget(QLabel("Email"))
        self._email_in = QLineEdit()
        self._email_in.setPlaceholderText("签名者邮箱，如 li@imlihe.com")
        lay.addWidget(self._email_in)

        lay.addWidget(QLabel("Message"))
        self._message_in = QPlainTextEdit()
        self._message_in.setFont(_MONO)
        self._message_in.setPlaceholderText("-----BEGIN PGP SIGNED MESSAGE-----")
        self._message_in.setMinimumHeight(140)
        lay.addWidget(self._message_in, stretch=1)

        self._result = ResultCard()
        lay.addWidget(self._result)

        # ── 按钮 ─────────────────────────────────────────
        btn_row = QHBoxLayout()
        self._reset_btn = QPushButton("Reset")
        self._reset_btn.setFixedHeight(34)
        self._reset_btn.clicked.connect(self._reset)
        btn_row.addWidget(self._reset_btn)
        btn_row.addStretch()
        self._verify_btn = QPushButton(_VERIFY_TEXT)
        self._verify_btn.setFixedHeight(34)
        self._verify_btn.setStyleSheet(
            "QPushButton{background:#0078d4;color:#fff;font-weight:bold;"
            "border-radius:6px;border:none;font-size:14px;padding:0 22px}"
            "QPushButton:hover{background:#106ebe;}"
            "QPushButton:disabled{background:#aaa;}")
        self._verify_btn.clicked.connect(self._verify)
        btn_row.addWidget(self._verify_btn)
        lay.addLayout(btn_row)

        QShortcut(QKeySequence("Ctrl+Return"), self, self._verify)

    # ── 状态 → 控件 ──────────────────────────────────────
    def _load_inputs(self):
        self._keyserver_in.setText(self._session.keyserver)
        self._email_in.setText(self._session.email)
        self._message_in.setPlainText(self._session.message)

    def _apply_session(self):
        loading = self._session.loading
        self._email_in.setEnabled(not loading)
        self._message_in.setReadOnly(loading)
        self._reset_btn.setEnabled(not loading)
        self._verify_btn.setEnabled(not loading)
        self._verify_btn.setText(_BUSY_TEXT if loading else _VERIFY_TEXT)
        self._result.show_outcome(self._session.result)

    # ── 操作 ─────────────────────────────────────────────
    def _verify(self):
        if self._session.loading:
            return
        request = self._session.with_input(
            self._email_in.text().strip(), self._message_in.toPlainText())
        self._session = request.start()
        self._apply_session()

        # 上一个线程发出 done 后 run() 可能尚未返回，替换引用前先等它结束
        if self._worker is not None:
            self._worker.wait()
        self._worker = VerifyWorker(self._workflow, request)
        self._worker.done.connect(self._on_done)
        self._worker.start()

    def _on_done(self, session: Session):
        self._session = session
        self._apply_session()

    def _reset(self):
        if self._session.loading:
            return
        self._session = Session.initial()
        self._load_inputs()
        self._apply_session()
