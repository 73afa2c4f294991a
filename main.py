"""Application entrypoint."""

from __future__ import annotations

import logging
import sys

from analysis_pipeline import AnalysisPipeline
from camera import OpenCvCameraDevice
from camera_controller import CameraController
from chat_session import ChatSession
from config import JsonConfigStore
from errors import AppError
from image_source import ImageSource
from inference_client import GeminiClient
from models import AnalysisState, CameraState, Turn
from views import AnalysisTab, AssistantTab

try:
    from PySide6.QtCore import QObject, QTimer, Signal
    from PySide6.QtWidgets import QApplication, QFileDialog, QMainWindow, QTabWidget
except Exception as exc:  # pragma: no cover
    raise SystemExit(f"PySide6 is required to run the desktop app: {exc}")

logger = logging.getLogger(__name__)

PREVIEW_INTERVAL_MS = 33


class UIBridge(QObject):
    analysis_state_signal = Signal(str, str)  # from_state, to_state
    camera_state_signal = Signal(str, str)
    error_signal = Signal(str)
    turn_signal = Signal(object)
    pending_signal = Signal(bool)


class App:
    def __init__(self) -> None:
        self.app = QApplication(sys.argv)
        self.config_store = JsonConfigStore()
        logging.basicConfig(
            level=self.config_store.get_log_level(),
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )

        self.ui = UIBridge()
        self.ui.analysis_state_signal.connect(self._on_analysis_state_ui)
        self.ui.camera_state_signal.connect(self._on_camera_state_ui)
        self.ui.error_signal.connect(self._on_error_ui)
        self.ui.turn_signal.connect(self._on_turn_ui)
        self.ui.pending_signal.connect(self._on_pending_ui)

        self.client = GeminiClient(
            api_key=self.config_store.get_api_key(),
            model=self.config_store.get_model(),
            base_url=self.config_store.get_base_url(),
            request_timeout_s=self.config_store.get_request_timeout_s(),
        )
        self.pipeline = AnalysisPipeline(
            client=self.client,
            on_state_change=lambda f, t: self.ui.analysis_state_signal.emit(f.value, t.value),
        )
        self.image_source = ImageSource(pipeline=self.pipeline)
        self.camera = CameraController(
            device=OpenCvCameraDevice(index_for=self.config_store.get_camera_index),
            image_source=self.image_source,
            on_state_change=lambda f, t: self.ui.camera_state_signal.emit(f.value, t.value),
            on_error=lambda code, msg: self.ui.error_signal.emit(msg),
        )
        self.chat = ChatSession(
            client=self.client,
            on_turn=self.ui.turn_signal.emit,
            on_pending_change=self.ui.pending_signal.emit,
        )

        self.analysis_tab = AnalysisTab()
        self.assistant_tab = AssistantTab()
        self._connect_widgets()

        self.window = QMainWindow()
        self.window.setWindowTitle("Arogya Mitra — AI-Powered Skin Health Analysis & Assistant")
        tabs = QTabWidget()
        tabs.addTab(self.analysis_tab, "🔬 Skin Analysis")
        tabs.addTab(self.assistant_tab, "🤖 AI Assistant")
        self.window.setCentralWidget(tabs)
        self.window.resize(900, 760)

        self.preview_timer = QTimer()
        self.preview_timer.timeout.connect(self._refresh_preview)

        self.chat.initialize()
        self._refresh_analyze_button()

    def _connect_widgets(self) -> None:
        tab = self.analysis_tab
        tab.upload_button.clicked.connect(self._upload)
        tab.camera_button.clicked.connect(lambda: self.camera.start())
        tab.capture_button.clicked.connect(self._capture)
        tab.flip_button.clicked.connect(lambda: self.camera.switch())
        tab.close_button.clicked.connect(lambda: self.camera.stop())
        tab.analyze_button.clicked.connect(self._analyze)

        chat = self.assistant_tab
        chat.input.textChanged.connect(self.chat.set_draft)
        chat.input.returnPressed.connect(self._send)
        chat.send_button.clicked.connect(self._send)
        for button in chat.suggestion_buttons:
            button.clicked.connect(lambda _=False, b=button: chat.input.setText(b.text()))

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    def _upload(self) -> None:
        path, _ = QFileDialog.getOpenFileName(
            self.window, "Select image", "", "Images (*.png *.jpg *.jpeg *.bmp *.gif *.webp)"
        )
        if not path:
            return
        try:
            image = self.image_source.load_from_path(path)
        except AppError as exc:
            self._on_error_ui(exc.user_message)
            return
        self._show_acquired(image.data)

    def _capture(self) -> None:
        image = self.camera.capture()
        if image is not None:
            self._show_acquired(image.data)

    def _analyze(self) -> None:
        self.pipeline.analyze(self.image_source.current)

    def _send(self) -> None:
        # the draft buffer is cleared by the session; mirror it in the input
        if self.chat.send() is not None:
            self.assistant_tab.input.clear()

    def _show_acquired(self, data: bytes) -> None:
        self.analysis_tab.show_image_bytes(data)
        self.analysis_tab.status.setText("✅ Image ready for analysis")
        self.analysis_tab.show_error("")
        self.analysis_tab.show_result(None, "")
        self._refresh_analyze_button()

    def _refresh_analyze_button(self) -> None:
        ready = (
            self.image_source.current is not None
            and self.pipeline.state != AnalysisState.REQUESTING
        )
        self.analysis_tab.set_analyze_enabled(ready)

    def _refresh_preview(self) -> None:
        frame = self.camera.read_preview()
        if frame is not None:
            self.analysis_tab.show_frame(frame)

    # ------------------------------------------------------------------
    # UI thread handlers (safe for Qt)
    # ------------------------------------------------------------------

    def _on_analysis_state_ui(self, from_state: str, to_state: str) -> None:
        tab = self.analysis_tab
        if to_state == AnalysisState.REQUESTING.value:
            tab.status.setText("🔍 AI is analyzing...")
            tab.show_error("")
            tab.show_result(None, "")
        elif to_state == AnalysisState.SUCCEEDED.value:
            result = self.pipeline.result
            tab.status.setText("📊 Analysis Complete")
            if result is not None:
                tab.show_result(result.text, result.display_timestamp)
        elif to_state == AnalysisState.FAILED.value:
            error = self.pipeline.error
            tab.status.setText("")
            tab.show_error(error.message if error else "")
        self._refresh_analyze_button()

    def _on_camera_state_ui(self, from_state: str, to_state: str) -> None:
        live = to_state == CameraState.LIVE.value
        self.analysis_tab.set_camera_live(live)
        if live:
            self.analysis_tab.show_error("")
            self.preview_timer.start(PREVIEW_INTERVAL_MS)
        else:
            self.preview_timer.stop()

    def _on_error_ui(self, msg: str) -> None:
        self.analysis_tab.show_error(msg)

    def _on_turn_ui(self, turn: Turn) -> None:
        self.assistant_tab.add_turn(turn)

    def _on_pending_ui(self, pending: bool) -> None:
        self.assistant_tab.set_pending(pending)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def run(self) -> int:
        self.app.aboutToQuit.connect(self.quit)
        if not self.config_store.get_api_key():
            logger.warning("no API key configured; set api_key in the config file or GEMINI_API_KEY")
        self.window.show()
        return self.app.exec()

    def quit(self) -> None:
        self.preview_timer.stop()
        self.camera.shutdown()
        self.pipeline.shutdown()
        self.chat.shutdown()
        self.client.close()


def main() -> int:
    app = App()
    return app.run()


if __name__ == "__main__":
    raise SystemExit(main())
