from __future__ import annotations

import threading

import pytest

from camera_controller import CameraController
from errors import DEVICE_UNAVAILABLE, PERMISSION_DENIED, AppError
from fakes import FakeDevice
from image_source import ImageSource
from models import CameraState, FacingMode

TIMEOUT = 2.0


class FakePipeline:
    def __init__(self) -> None:
        self.cleared = 0

    def clear_outcome(self) -> None:
        self.cleared += 1


def _setup(device: FakeDevice, **kwargs) -> tuple[CameraController, ImageSource, FakePipeline]:  # noqa: ANN003
    pipeline = FakePipeline()
    source = ImageSource(pipeline=pipeline)
    return CameraController(device=device, image_source=source, **kwargs), source, pipeline


def test_start_goes_live_with_requested_facing_mode() -> None:
    device = FakeDevice()
    transitions: list[tuple[CameraState, CameraState]] = []
    controller, _, _ = _setup(device, on_state_change=lambda f, t: transitions.append((f, t)))

    state = controller.start(FacingMode.FRONT).result(timeout=TIMEOUT)

    assert state == CameraState.LIVE
    assert controller.facing_mode == FacingMode.FRONT
    assert controller.stream is device.streams[0]
    assert transitions == [
        (CameraState.CLOSED, CameraState.STARTING),
        (CameraState.STARTING, CameraState.LIVE),
    ]
    controller.stop()


@pytest.mark.parametrize(
    "code, expected",
    [
        (PERMISSION_DENIED, "Camera access denied. Please allow camera permissions."),
        (DEVICE_UNAVAILABLE, "Camera not supported on this device."),
    ],
)
def test_start_failure_closes_and_reports(code: str, expected: str) -> None:
    device = FakeDevice(open_error=AppError(code, "denied"))
    errors: list[tuple[str, str]] = []
    controller, _, _ = _setup(device, on_error=lambda c, m: errors.append((c, m)))

    state = controller.start().result(timeout=TIMEOUT)

    assert state == CameraState.CLOSED
    assert controller.stream is None
    assert errors == [(code, expected)]
    assert controller.last_error == (code, expected)


def test_unexpected_open_exception_is_device_unavailable() -> None:
    controller, _, _ = _setup(FakeDevice(open_error=OSError("no /dev/video0")))

    assert controller.start().result(timeout=TIMEOUT) == CameraState.CLOSED
    assert controller.last_error[0] == DEVICE_UNAVAILABLE


def test_switch_never_holds_two_handles() -> None:
    device = FakeDevice()
    controller, _, _ = _setup(device)
    controller.start(FacingMode.BACK).result(timeout=TIMEOUT)

    for _ in range(5):
        future = controller.switch()
        assert future is not None
        assert future.result(timeout=TIMEOUT) == CameraState.LIVE
        assert device.outstanding <= 1

    assert device.max_outstanding == 1
    assert device.opened == [
        FacingMode.BACK,
        FacingMode.FRONT,
        FacingMode.BACK,
        FacingMode.FRONT,
        FacingMode.BACK,
        FacingMode.FRONT,
    ]
    controller.stop()
    assert device.outstanding == 0


def test_switch_outside_live_is_ignored() -> None:
    device = FakeDevice()
    controller, _, _ = _setup(device)
    assert controller.switch() is None
    assert device.acquired == 0


def test_restart_while_live_releases_first() -> None:
    device = FakeDevice()
    controller, _, _ = _setup(device)
    controller.start().result(timeout=TIMEOUT)
    controller.start(FacingMode.FRONT).result(timeout=TIMEOUT)

    assert device.max_outstanding == 1
    assert device.streams[0].stopped is True
    controller.stop()


def test_capture_produces_image_and_closes() -> None:
    device = FakeDevice()
    controller, source, pipeline = _setup(device)
    controller.start().result(timeout=TIMEOUT)

    image = controller.capture()

    assert image is not None
    assert image.mime_type == "image/jpeg"
    assert (image.width, image.height) == (64, 48)
    assert source.current is image
    assert pipeline.cleared == 1
    assert controller.state == CameraState.CLOSED
    assert device.outstanding == 0


def test_capture_while_closed_is_rejected_without_side_effects() -> None:
    device = FakeDevice()
    transitions: list[tuple[CameraState, CameraState]] = []
    controller, source, pipeline = _setup(
        device, on_state_change=lambda f, t: transitions.append((f, t))
    )

    assert controller.capture() is None
    assert source.current is None
    assert pipeline.cleared == 0
    assert transitions == []
    assert controller.state == CameraState.CLOSED


def test_capture_read_failure_closes_and_reports() -> None:
    device = FakeDevice()
    errors: list[tuple[str, str]] = []
    controller, source, _ = _setup(device, on_error=lambda c, m: errors.append((c, m)))
    controller.start().result(timeout=TIMEOUT)
    device.read_error = AppError(DEVICE_UNAVAILABLE, "read failed")

    assert controller.capture() is None
    assert source.current is None
    assert controller.state == CameraState.CLOSED
    assert device.outstanding == 0
    assert errors[0][0] == DEVICE_UNAVAILABLE


def test_stop_is_idempotent() -> None:
    device = FakeDevice()
    controller, _, _ = _setup(device)
    controller.stop()
    controller.start().result(timeout=TIMEOUT)
    controller.stop()
    controller.stop()

    assert controller.state == CameraState.CLOSED
    assert device.released == 1


def test_stop_during_starting_releases_late_handle() -> None:
    gate = threading.Event()
    device = FakeDevice()
    original_open = device.open

    def slow_open(facing_mode: FacingMode):  # noqa: ANN202
        assert gate.wait(timeout=TIMEOUT)
        return original_open(facing_mode)

    device.open = slow_open  # type: ignore[method-assign]
    controller, _, _ = _setup(device)

    future = controller.start()
    assert controller.state == CameraState.STARTING
    controller.stop()
    assert controller.state == CameraState.CLOSED

    gate.set()
    assert future.result(timeout=TIMEOUT) == CameraState.CLOSED
    assert controller.stream is None
    assert device.outstanding == 0


def test_read_preview_only_when_live() -> None:
    device = FakeDevice()
    controller, _, _ = _setup(device)
    assert controller.read_preview() is None

    controller.start().result(timeout=TIMEOUT)
    frame = controller.read_preview()
    assert frame is not None
    assert frame.shape == (48, 64, 3)
    controller.stop()
