# -*- coding: utf-8 -*-
"""
RTSP 프레임 소스.

OpenCV VideoCapture로 스트림을 열고, 별도 리더 스레드에서 프레임을 가져올 때마다
등록된 콜백을 호출합니다. 프레임 내용은 검사하지 않습니다.
"""

from __future__ import annotations

import os
import threading
from dataclasses import dataclass

import cv2

from fps_monitor.common.errors import ErrorCode, SourceError
from fps_monitor.common.logging import get_logger, set_stream_context
from fps_monitor.domain.interfaces.source import FrameCallback
from fps_monitor.domain.models.stream import StreamConfig, mask_url

# FFmpeg 로그 레벨 설정 (H.264 디코딩 경고 메시지 필터링)
os.environ.setdefault("OPENCV_FFMPEG_LOGLEVEL", "-8")


# 코덱별 디페이로더 → 디코더 체인
_GST_CODEC_CHAINS: dict[str, str] = {
    "H264": "rtph264depay ! h264parse ! avdec_h264",
    "H265": "rtph265depay ! h265parse ! avdec_h265",
    "JPEG": "rtpjpegdepay ! jpegdec",
    "VP8": "rtpvp8depay ! vp8dec",
    "VP9": "rtpvp9depay ! vp9dec",
    "H263": "rtph263depay ! avdec_h263",
}


@dataclass(frozen=True)
class SourceOptions:
    """
    프레임 소스 옵션 (런타임용)

    Attributes:
        backend: OpenCV 캡처 백엔드 (ffmpeg, gstreamer)
        transport: RTSP 전송 프로토콜 (tcp, udp)
        latency_ms: GStreamer rtspsrc 지연
        codec: GStreamer 코덱 (auto면 decodebin 사용)
        open_timeout_ms: 연결 타임아웃
        read_timeout_ms: 프레임 읽기 타임아웃
    """

    backend: str = "ffmpeg"
    transport: str = "tcp"
    latency_ms: int = 200
    codec: str = "auto"
    open_timeout_ms: int = 10000
    read_timeout_ms: int = 5000


def build_gstreamer_pipeline(url: str, options: SourceOptions, stream_id: str = "unknown") -> str:
    """
    OpenCV CAP_GSTREAMER용 파이프라인 문자열을 만듭니다.

    Raises:
        SourceError: 지원하지 않는 코덱인 경우
    """
    protocols = "tcp" if options.transport.lower() == "tcp" else "udp"
    source = f"rtspsrc location={url} protocols={protocols} latency={int(options.latency_ms)}"

    codec = options.codec if options.codec == "auto" else options.codec.upper()
    if codec == "auto":
        chain = "decodebin"
    elif codec in _GST_CODEC_CHAINS:
        chain = _GST_CODEC_CHAINS[codec]
    else:
        raise SourceError(
            ErrorCode.SOURCE_UNSUPPORTED_CODEC,
            f"지원하지 않는 코덱: {options.codec}",
            stream_id=stream_id,
            backend="gstreamer",
            details={"supported": sorted(_GST_CODEC_CHAINS)},
        )

    return f"{source} ! {chain} ! videoconvert ! appsink sync=false drop=true max-buffers=2"


class RTSPFrameSource:
    """
    RTSP 프레임 소스.

    start()는 캡처를 열고 리더 스레드를 시작합니다. 리더 스레드만 캡처에 접근하며
    종료 시 캡처를 해제합니다. 프레임 수신 실패는 기록만 하고 집계하지 않습니다.
    """

    JOIN_TIMEOUT_SECONDS = 5.0
    RETRY_SLEEP_SECONDS = 0.1
    # 연속 실패 로그는 이 횟수마다 한 번씩만 남깁니다
    FAILURE_LOG_EVERY = 100

    def __init__(self, stream_id: str, options: SourceOptions | None = None) -> None:
        """
        RTSPFrameSource 초기화.

        Args:
            stream_id: 스트림 식별자 (로깅용)
            options: 소스 옵션

        Raises:
            SourceError: 옵션이 유효하지 않은 경우 (지원하지 않는 백엔드/코덱)
        """
        self._stream_id = stream_id
        self._options = options or SourceOptions()

        if self._options.backend not in ("ffmpeg", "gstreamer"):
            raise SourceError(
                ErrorCode.SOURCE_CREATE_FAILED,
                f"지원하지 않는 백엔드: {self._options.backend}",
                stream_id=stream_id,
                backend=self._options.backend,
            )
        codec = self._options.codec
        if self._options.backend == "gstreamer" and codec != "auto" and codec.upper() not in _GST_CODEC_CHAINS:
            raise SourceError(
                ErrorCode.SOURCE_UNSUPPORTED_CODEC,
                f"지원하지 않는 코덱: {codec}",
                stream_id=stream_id,
                backend="gstreamer",
            )

        self._on_frame: FrameCallback | None = None
        self._thread: threading.Thread | None = None
        self._stop_event = threading.Event()
        self._lock = threading.Lock()

        self._logger = get_logger(__name__, stream_id=stream_id)

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def set_on_frame(self, callback: FrameCallback | None) -> None:
        self._on_frame = callback

    def start(self, url: str) -> bool:
        """
        스트림에 연결하고 리더 스레드를 시작합니다.

        Returns:
            연결 성공 여부
        """
        with self._lock:
            self._stop_reader()

            self._logger.info("스트림 연결 시도", url=mask_url(url), backend=self._options.backend)

            try:
                cap = self._open_capture(url)
            except Exception as e:
                self._logger.error(
                    "스트림 연결 중 오류 발생",
                    code=ErrorCode.STREAM_CONNECTION_FAILED.value,
                    error=str(e),
                )
                return False

            if not cap.isOpened():
                cap.release()
                self._logger.error(
                    "스트림 연결 실패",
                    code=ErrorCode.STREAM_CONNECTION_FAILED.value,
                    url=mask_url(url),
                )
                return False

            self._stop_event = threading.Event()
            self._thread = threading.Thread(
                target=self._read_loop,
                args=(cap, self._stop_event),
                name=f"reader_{self._stream_id}",
                daemon=True,
            )
            self._thread.start()
            self._logger.info("스트림 연결 성공")
            return True

    def stop(self) -> None:
        """리더 스레드를 중지합니다. 캡처는 리더 스레드가 해제합니다."""
        with self._lock:
            self._stop_reader()

    def _stop_reader(self) -> None:
        self._stop_event.set()
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=self.JOIN_TIMEOUT_SECONDS)
            if self._thread.is_alive():
                self._logger.warning("리더 스레드 종료 지연, 백그라운드에서 해제됩니다")
        self._thread = None

    def _open_capture(self, url: str) -> cv2.VideoCapture:
        if self._options.backend == "gstreamer":
            pipeline = build_gstreamer_pipeline(url, self._options, self._stream_id)
            return cv2.VideoCapture(pipeline, cv2.CAP_GSTREAMER)

        if url.startswith("rtsp://") and self._options.transport == "tcp":
            os.environ.setdefault("OPENCV_FFMPEG_CAPTURE_OPTIONS", "rtsp_transport;tcp")

        # 연결 타임아웃은 열기 전에만 적용되므로 생성자 파라미터로 전달
        params = [
            cv2.CAP_PROP_OPEN_TIMEOUT_MSEC, int(self._options.open_timeout_ms),
            cv2.CAP_PROP_READ_TIMEOUT_MSEC, int(self._options.read_timeout_ms),
        ]
        return cv2.VideoCapture(url, cv2.CAP_FFMPEG, params)

    def _read_loop(self, cap: cv2.VideoCapture, stop_event: threading.Event) -> None:
        set_stream_context(self._stream_id)
        failures = 0

        try:
            while not stop_event.is_set():
                try:
                    ok = cap.grab()
                except Exception as e:
                    self._logger.error(
                        "프레임 읽기 중 오류 발생",
                        code=ErrorCode.STREAM_DECODE_ERROR.value,
                        error=str(e),
                    )
                    ok = False

                if not ok:
                    if failures % self.FAILURE_LOG_EVERY == 0:
                        self._logger.warning(
                            "프레임 읽기 실패",
                            code=ErrorCode.STREAM_DECODE_ERROR.value,
                            consecutive_failures=failures + 1,
                        )
                    failures += 1
                    stop_event.wait(self.RETRY_SLEEP_SECONDS)
                    continue

                failures = 0
                callback = self._on_frame
                if callback is not None:
                    callback()
        finally:
            cap.release()
            self._logger.info("스트림 연결 해제")


def create_frame_source(config: StreamConfig, options: SourceOptions | None = None) -> RTSPFrameSource:
    """스트림 설정으로 RTSPFrameSource를 생성합니다."""
    return RTSPFrameSource(config.stream_id, options)
