# -*- coding: utf-8 -*-
"""主窗口 — 单页居中卡片

布局:
    ┌──────────────────────────────────────┐
    │            浅色背景                    │
    │     ┌────────────────────────┐       │
    │     │  VerifyPanel (卡片)     │       │
    │     └────────────────────────┘       │
    └──────────────────────────────────────┘
"""

from PyQt5.QtWidgets import (
    QMainWindow, QWidget, QHBoxLayout, QVBoxLayout, QFrame,
)

from .panels.verify_panel import VerifyPanel


class MainWindow(QMainWindow):

    def __init__(self, workflow=None):
        super().__init__()
        self._setup_window()
        self._build_ui(workflow)

    # ── 窗口属性 ─────────────────────────────────────────────
    def _setup_window(self):
        self.setWindowTitle("PGP Verifier — 明文签名验证")
        self.resize(640, 760)
        self.setMinimumSize(480, 600)

    # ── 整体布局 ─────────────────────────────────────────────
    def _build_ui(self, workflow):
        central = QWidget()
        central.setObjectName("contentArea")
        central.setStyleSheet("#contentArea{background:#f0f2f5;}")
        outer = QVBoxLayout(central)
        outer.setContentsMargins(24, 24, 24, 24)

        row = QHBoxLayout()
        row.addStretch()

        card = QFrame()
        card.setObjectName("card")
        card.setMaximumWidth(560)
        card.setStyleSheet(
            "#card{background:#ffffff; border:1px solid #dfe2e8; "
            "border-radius:10px;}")
        cl = QVBoxLayout(card)
        cl.setContentsMargins(0, 0, 0, 0)
        self.panel = VerifyPanel(workflow)
        cl.addWidget(self.panel)

        row.addWidget(card, stretch=1)
        row.addStretch()
        outer.addLayout(row, stretch=1)

        self.setCentralWidget(central)
