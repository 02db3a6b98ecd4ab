"""RTSP frame source with a stubbed OpenCV capture."""
import threading

import pytest

from conftest import wait_until
from fps_monitor.common.errors import ErrorCode, SourceError
from fps_monitor.domain.interfaces.source import FrameSource
from fps_monitor.domain.models.stream import StreamConfig
from fps_monitor.infrastructure.video import rtsp_source
from fps_monitor.infrastructure.video.rtsp_source import (
    RTSPFrameSource,
    SourceOptions,
    build_gstreamer_pipeline,
    create_frame_source,
)

URL = "rtsp://10.0.0.5:554/live"


class FakeCapture:
    """cv2.VideoCapture 대역. grab()은 frames 개수만큼만 성공합니다."""

    instances = []

    def __init__(self, target, api=None, params=None, opened=True, frames=3):
        self.target = target
        self.api = api
        self.params = list(params or [])
        self.opened = opened
        self.remaining = frames
        self.released = threading.Event()
        FakeCapture.instances.append(self)

    def isOpened(self):
        return self.opened

    def grab(self):
        if self.remaining > 0:
            self.remaining -= 1
            return True
        return False

    def release(self):
        self.released.set()


@pytest.fixture
def fake_capture(monkeypatch):
    FakeCapture.instances = []
    monkeypatch.setattr(rtsp_source.cv2, "VideoCapture", FakeCapture)
    return FakeCapture


@pytest.mark.unit
class TestGStreamerPipeline:

    def test_auto_codec_uses_decodebin(self):
        pipeline = build_gstreamer_pipeline(URL, SourceOptions(backend="gstreamer"))

        assert pipeline == (
            f"rtspsrc location={URL} protocols=tcp latency=200 ! decodebin ! "
            "videoconvert ! appsink sync=false drop=true max-buffers=2"
        )

    @pytest.mark.parametrize(
        "codec, chain",
        [
            ("H264", "rtph264depay ! h264parse ! avdec_h264"),
            ("h265", "rtph265depay ! h265parse ! avdec_h265"),
            ("JPEG", "rtpjpegdepay ! jpegdec"),
            ("VP9", "rtpvp9depay ! vp9dec"),
        ],
    )
    def test_codec_chains(self, codec, chain):
        options = SourceOptions(backend="gstreamer", codec=codec, transport="udp", latency_ms=0)
        pipeline = build_gstreamer_pipeline(URL, options)

        assert f"protocols=udp latency=0 ! {chain} ! videoconvert" in pipeline

    def test_unsupported_codec(self):
        with pytest.raises(SourceError) as exc:
            build_gstreamer_pipeline(URL, SourceOptions(codec="MPEG2"), stream_id="cam0")

        assert exc.value.code == ErrorCode.SOURCE_UNSUPPORTED_CODEC
        assert exc.value.stream_id == "cam0"


@pytest.mark.unit
class TestRTSPFrameSource:

    def test_satisfies_frame_source_protocol(self):
        assert isinstance(RTSPFrameSource("cam0"), FrameSource)

    def test_invalid_backend(self):
        with pytest.raises(SourceError) as exc:
            RTSPFrameSource("cam0", SourceOptions(backend="vlc"))

        assert exc.value.code == ErrorCode.SOURCE_CREATE_FAILED

    def test_invalid_gstreamer_codec(self):
        with pytest.raises(SourceError) as exc:
            RTSPFrameSource("cam0", SourceOptions(backend="gstreamer", codec="MPEG2"))

        assert exc.value.code == ErrorCode.SOURCE_UNSUPPORTED_CODEC

    def test_create_frame_source(self):
        source = create_frame_source(StreamConfig("lobby", URL))

        assert isinstance(source, RTSPFrameSource)
        assert not source.is_running

    def test_start_fails_when_not_opened(self, monkeypatch):
        captures = []

        def closed_capture(target, api=None, params=None):
            cap = FakeCapture(target, api, params, opened=False)
            captures.append(cap)
            return cap

        monkeypatch.setattr(rtsp_source.cv2, "VideoCapture", closed_capture)
        source = RTSPFrameSource("cam0")

        assert source.start(URL) is False
        assert not source.is_running
        assert captures[0].released.is_set()

    def test_start_fails_on_capture_exception(self, monkeypatch):
        def broken(target, api=None, params=None):
            raise RuntimeError("backend missing")

        monkeypatch.setattr(rtsp_source.cv2, "VideoCapture", broken)

        assert RTSPFrameSource("cam0").start(URL) is False

    @pytest.mark.timeout(10)
    def test_frames_invoke_callback(self, fake_capture):
        frames = []
        source = RTSPFrameSource("cam0")
        source.set_on_frame(lambda: frames.append(1))

        assert source.start(URL) is True
        assert wait_until(lambda: len(frames) == 3)

        source.stop()
        assert not source.is_running
        assert fake_capture.instances[0].released.wait(2)
        assert fake_capture.instances[0].api == rtsp_source.cv2.CAP_FFMPEG

    @pytest.mark.timeout(10)
    def test_gstreamer_backend_passes_pipeline(self, fake_capture):
        source = RTSPFrameSource("cam0", SourceOptions(backend="gstreamer", codec="H264"))

        assert source.start(URL) is True
        source.stop()

        cap = fake_capture.instances[0]
        assert cap.api == rtsp_source.cv2.CAP_GSTREAMER
        assert cap.target.startswith(f"rtspsrc location={URL}")

    @pytest.mark.timeout(10)
    def test_restart_replaces_reader(self, fake_capture):
        source = RTSPFrameSource("cam0")

        assert source.start(URL) is True
        assert source.start(URL) is True
        source.stop()

        assert len(fake_capture.instances) == 2
        assert all(cap.released.wait(2) for cap in fake_capture.instances)

    @pytest.mark.timeout(10)
    def test_ffmpeg_timeouts_passed_when_opening(self, fake_capture):
        options = SourceOptions(open_timeout_ms=3000, read_timeout_ms=1500)
        source = RTSPFrameSource("cam0", options)

        assert source.start(URL) is True
        source.stop()

        params = fake_capture.instances[0].params
        settings = dict(zip(params[::2], params[1::2]))
        assert settings == {
            rtsp_source.cv2.CAP_PROP_OPEN_TIMEOUT_MSEC: 3000,
            rtsp_source.cv2.CAP_PROP_READ_TIMEOUT_MSEC: 1500,
        }

    @pytest.mark.timeout(10)
    def test_failures_logged_with_error_codes(self, monkeypatch, log_records):
        def closed_capture(target, api=None, params=None):
            return FakeCapture(target, api, params, opened=False)

        monkeypatch.setattr(rtsp_source.cv2, "VideoCapture", closed_capture)
        assert RTSPFrameSource("cam0").start(URL) is False

        def stalled_capture(target, api=None, params=None):
            return FakeCapture(target, api, params, frames=0)

        monkeypatch.setattr(rtsp_source.cv2, "VideoCapture", stalled_capture)
        source = RTSPFrameSource("cam0")
        assert source.start(URL) is True
        assert wait_until(
            lambda: any(
                r["extra"].get("code") == ErrorCode.STREAM_DECODE_ERROR.value for r in log_records
            )
        )
        source.stop()

        codes = {r["extra"].get("code") for r in log_records}
        assert ErrorCode.STREAM_CONNECTION_FAILED.value in codes
