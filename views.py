"""Tab widgets for skin analysis and the assistant chat."""

from __future__ import annotations

from typing import Any

from models import Speaker, Turn
from prompts import CAPTURE_TIPS, MEDICAL_DISCLAIMER, SUGGESTED_QUESTIONS

try:
    from PySide6.QtCore import Qt
    from PySide6.QtGui import QImage, QPixmap
    from PySide6.QtWidgets import (
        QGridLayout,
        QHBoxLayout,
        QLabel,
        QLineEdit,
        QListWidget,
        QListWidgetItem,
        QPlainTextEdit,
        QPushButton,
        QVBoxLayout,
        QWidget,
    )
except Exception:  # pragma: no cover
    Qt = None  # type: ignore
    QImage = None  # type: ignore
    QPixmap = None  # type: ignore
    QGridLayout = object  # type: ignore
    QHBoxLayout = object  # type: ignore
    QLabel = object  # type: ignore
    QLineEdit = object  # type: ignore
    QListWidget = object  # type: ignore
    QListWidgetItem = object  # type: ignore
    QPlainTextEdit = object  # type: ignore
    QPushButton = object  # type: ignore
    QVBoxLayout = object  # type: ignore
    QWidget = object  # type: ignore

PREVIEW_HEIGHT = 220


class AnalysisTab(QWidget):
    def __init__(self) -> None:
        if Qt is None:
            raise RuntimeError("PySide6 is not installed")
        super().__init__()

        self.preview = QLabel("📷 Upload image or use camera")
        self.preview.setAlignment(Qt.AlignCenter)
        self.preview.setMinimumHeight(PREVIEW_HEIGHT)
        self.preview.setStyleSheet("border: 3px dashed #ccc; border-radius: 15px;")

        self.upload_button = QPushButton("📁 Upload")
        self.camera_button = QPushButton("📷 Camera")
        self.analyze_button = QPushButton("🧠 Analyze")
        self.capture_button = QPushButton("📸 Capture")
        self.flip_button = QPushButton("🔄 Flip")
        self.close_button = QPushButton("❌ Close")

        buttons = QGridLayout()
        for column, button in enumerate(
            (self.upload_button, self.camera_button, self.analyze_button)
        ):
            buttons.addWidget(button, 0, column)
        for column, button in enumerate(
            (self.capture_button, self.flip_button, self.close_button)
        ):
            buttons.addWidget(button, 1, column)

        tips = QLabel("💡 Tips:\n" + "\n".join(f"• {tip}" for tip in CAPTURE_TIPS))

        self.status = QLabel("")
        self.error = QLabel("")
        self.error.setWordWrap(True)
        self.error.setStyleSheet("color: #dc2626;")
        self.result = QPlainTextEdit()
        self.result.setReadOnly(True)
        self.timestamp = QLabel("")
        self.timestamp.setAlignment(Qt.AlignRight)
        self.disclaimer = QLabel(f"⚠️ Medical Disclaimer\n{MEDICAL_DISCLAIMER}")
        self.disclaimer.setWordWrap(True)

        layout = QVBoxLayout()
        layout.addWidget(self.preview)
        layout.addLayout(buttons)
        layout.addWidget(tips)
        layout.addWidget(self.status)
        layout.addWidget(self.error)
        layout.addWidget(self.result)
        layout.addWidget(self.timestamp)
        layout.addWidget(self.disclaimer)
        self.setLayout(layout)

        self.set_camera_live(False)
        self.show_result(None, "")

    def set_camera_live(self, live: bool) -> None:
        for button in (self.capture_button, self.flip_button, self.close_button):
            button.setVisible(live)
        for button in (self.upload_button, self.camera_button, self.analyze_button):
            button.setVisible(not live)

    def set_analyze_enabled(self, enabled: bool) -> None:
        self.analyze_button.setEnabled(enabled)

    def show_frame(self, frame: Any) -> None:
        """Render an RGB frame array into the preview area."""
        height, width = frame.shape[:2]
        image = QImage(frame.data, width, height, frame.strides[0], QImage.Format_RGB888)
        self._set_pixmap(QPixmap.fromImage(image.copy()))

    def show_image_bytes(self, data: bytes) -> None:
        pixmap = QPixmap()
        pixmap.loadFromData(data)
        self._set_pixmap(pixmap)

    def show_result(self, text: str | None, timestamp: str) -> None:
        visible = text is not None
        self.result.setPlainText(text or "")
        self.timestamp.setText(f"🕒 {timestamp}" if timestamp else "")
        for widget in (self.result, self.timestamp, self.disclaimer):
            widget.setVisible(visible)

    def show_error(self, message: str) -> None:
        self.error.setText(f"❌ {message}" if message else "")

    def _set_pixmap(self, pixmap: Any) -> None:
        self.preview.setPixmap(
            pixmap.scaledToHeight(PREVIEW_HEIGHT, Qt.SmoothTransformation)
        )


class AssistantTab(QWidget):
    def __init__(self) -> None:
        if Qt is None:
            raise RuntimeError("PySide6 is not installed")
        super().__init__()

        self.transcript = QListWidget()
        self.transcript.setWordWrap(True)
        self.typing = QLabel("Typing...")
        self.typing.setVisible(False)

        self.input = QLineEdit()
        self.input.setPlaceholderText("Ask about skin conditions...")
        self.send_button = QPushButton("🚀")

        row = QHBoxLayout()
        row.addWidget(self.input)
        row.addWidget(self.send_button)

        self.suggestion_buttons = [QPushButton(q) for q in SUGGESTED_QUESTIONS]
        suggestions = QHBoxLayout()
        for button in self.suggestion_buttons:
            suggestions.addWidget(button)

        layout = QVBoxLayout()
        layout.addWidget(self.transcript)
        layout.addWidget(self.typing)
        layout.addLayout(row)
        layout.addWidget(QLabel("💬 Try asking:"))
        layout.addLayout(suggestions)
        self.setLayout(layout)

    def add_turn(self, turn: Turn) -> None:
        item = QListWidgetItem(turn.text)
        if turn.speaker == Speaker.USER:
            item.setTextAlignment(Qt.AlignRight)
        self.transcript.addItem(item)
        self.transcript.scrollToBottom()

    def set_pending(self, pending: bool) -> None:
        self.typing.setVisible(pending)
        self.input.setEnabled(not pending)
        self.send_button.setEnabled(not pending)
