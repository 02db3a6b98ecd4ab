"""
스트림 감시자

하나의 스트림을 처음부터 끝까지 관리합니다.
소스를 시작하고, 주기적으로 프레임 수신율을 샘플링하고,
장시간 정지된 스트림을 재연결합니다.
"""

from __future__ import annotations

import threading

from fps_monitor.application.stream.counter import FrameCounter
from fps_monitor.application.stream.registry import StatusRegistry
from fps_monitor.common.errors import ErrorCode, StreamError
from fps_monitor.common.logging import get_logger, set_stream_context
from fps_monitor.domain.interfaces.source import FrameSource
from fps_monitor.domain.models.stream import StreamConfig, StreamState, StreamStatus


class StreamSupervisor:
    """
    스트림 감시자

    매 샘플링 윈도우마다 프레임 수를 읽어 FPS를 계산하고 레지스트리에 기록합니다.
    0 FPS 윈도우가 downtime_threshold 회 연속되면 소스를 재시작합니다.
    재시작 성공 여부와 무관하게 카운터는 0으로 돌아가며,
    실패한 재시작은 다음 0 FPS 윈도우들이 다시 임계치를 채우면 재시도됩니다.

    Attributes:
        downtime_threshold: 재연결까지 필요한 연속 0 FPS 윈도우 수
        reconnect_backoff: 연속 재연결 시 임계치를 지수적으로 늘릴지 여부
        max_downtime_threshold: 백오프 적용 시 임계치 상한

    Example:
        >>> supervisor = StreamSupervisor(config, source, registry)
        >>> supervisor.start()
        >>> supervisor.run_loop(interval=1)   # 별도 스레드에서
        >>> supervisor.stop()
    """

    DEFAULT_DOWNTIME_THRESHOLD = 5
    DEFAULT_MAX_DOWNTIME_THRESHOLD = 80

    def __init__(
        self,
        config: StreamConfig,
        source: FrameSource,
        registry: StatusRegistry,
        downtime_threshold: int = DEFAULT_DOWNTIME_THRESHOLD,
        reconnect_backoff: bool = False,
        max_downtime_threshold: int = DEFAULT_MAX_DOWNTIME_THRESHOLD,
    ) -> None:
        """
        스트림 감시자 초기화

        Args:
            config: 스트림 설정
            source: 디코딩 협력자
            registry: FPS를 기록할 상태 레지스트리
            downtime_threshold: 재연결까지 필요한 연속 0 FPS 윈도우 수
            reconnect_backoff: 재연결 임계치 지수 백오프 사용 여부
            max_downtime_threshold: 백오프 적용 시 임계치 상한
        """
        if downtime_threshold < 1:
            raise ValueError(f"downtime_threshold는 1 이상이어야 합니다: {downtime_threshold}")

        self._config = config
        self._source = source
        self._registry = registry
        self.downtime_threshold = downtime_threshold
        self.reconnect_backoff = reconnect_backoff
        self.max_downtime_threshold = max(max_downtime_threshold, downtime_threshold)

        self._state = StreamState(config=config)
        self._counter = FrameCounter()
        self._stop_event = threading.Event()
        # 재연결과 stop()이 서로 끼어들지 않도록 보호
        self._lifecycle_lock = threading.RLock()

        self._logger = get_logger(__name__, stream_id=config.stream_id)

        self._source.set_on_frame(self._counter.record_frame)

    @property
    def stream_id(self) -> str:
        return self._config.stream_id

    @property
    def state(self) -> StreamState:
        return self._state

    @property
    def frame_counter(self) -> FrameCounter:
        return self._counter

    @property
    def is_stopped(self) -> bool:
        return self._stop_event.is_set()

    @property
    def current_downtime_threshold(self) -> int:
        """다음 재연결까지 필요한 연속 0 FPS 윈도우 수"""
        if not self.reconnect_backoff:
            return self.downtime_threshold
        return calculate_downtime_threshold(
            self._state.consecutive_reconnects,
            self.downtime_threshold,
            self.max_downtime_threshold,
        )

    def start(self) -> bool:
        """
        소스를 시작하고 PLAYING 상태로 전이합니다.

        소스 시작에 실패해도 PLAYING으로 전이합니다.
        이후 0 FPS 윈도우가 누적되어 재연결 경로로 재시도됩니다.

        Returns:
            소스 시작 성공 여부

        Raises:
            StreamError: 이미 시작되었거나 중지된 감시자인 경우
        """
        with self._lifecycle_lock:
            if self._state.status == StreamStatus.STOPPED:
                raise StreamError(
                    ErrorCode.STREAM_ALREADY_STOPPED,
                    f"중지된 스트림은 다시 시작할 수 없습니다: {self.stream_id}",
                    stream_id=self.stream_id,
                )
            if self._state.status != StreamStatus.IDLE:
                raise StreamError(
                    ErrorCode.STREAM_ALREADY_RUNNING,
                    f"스트림이 이미 실행 중입니다: {self.stream_id}",
                    stream_id=self.stream_id,
                )

            self._state.set_status(StreamStatus.STARTING)
            self._logger.info(
                f"스트림 시작: {self.stream_id}",
                url=self._config.masked_url,
            )

            started = self._start_source()
            self._state.set_status(StreamStatus.PLAYING)
            return started

    def stop(self) -> None:
        """
        감시를 중지하고 소스를 정지합니다.

        여러 번 호출해도 추가 효과가 없습니다.
        진행 중인 재연결이 있으면 끝날 때까지 기다립니다.
        """
        self._stop_event.set()

        with self._lifecycle_lock:
            if self._state.status == StreamStatus.STOPPED:
                return

            self._stop_source()
            self._state.set_status(StreamStatus.STOPPED)
            self._logger.info(f"스트림 중지: {self.stream_id}")

    def run_loop(self, interval: int) -> None:
        """
        감시 루프

        interval 초마다 sample_window()를 호출합니다.
        stop()이 호출되면 대기 중이라도 즉시 깨어나 종료합니다.
        샘플링 중 오류는 기록만 하고 루프를 계속합니다.

        Args:
            interval: 샘플링 주기 (초, 1 이상의 정수)
        """
        if interval < 1:
            raise ValueError(f"interval은 1 이상이어야 합니다: {interval}")

        set_stream_context(self.stream_id)
        self._logger.debug("감시 루프 시작", interval=interval)

        while not self._stop_event.is_set():
            if self._stop_event.wait(interval):
                break
            try:
                self.sample_window(interval)
            except Exception as e:
                self._logger.exception(f"샘플링 오류: {e}", code=ErrorCode.INTERNAL_ERROR.value)

        self._logger.debug("감시 루프 종료")

    def sample_window(self, interval: int) -> int:
        """
        샘플링 윈도우 하나를 처리합니다.

        프레임 수를 읽고 초기화한 뒤 FPS(정수 나눗셈)를 계산하여
        레지스트리에 기록하고 정지 정책을 적용합니다.

        Args:
            interval: 윈도우 길이 (초)

        Returns:
            계산된 FPS
        """
        frames = self._counter.sample_and_reset()
        fps = frames // interval

        with self._lifecycle_lock:
            self._state.last_fps = fps
            self._state.sample_count += 1
            self._registry.set(self.stream_id, fps)

            if self._state.status != StreamStatus.STOPPED:
                self._apply_stall_policy(fps)

        return fps

    def _apply_stall_policy(self, fps: int) -> None:
        """연속 0 FPS 윈도우 수를 갱신하고 필요 시 재연결합니다."""
        state = self._state

        if fps > 0:
            if state.downtime_windows > 0:
                self._logger.info(
                    f"프레임 수신 재개: {fps} FPS",
                    downtime_windows=state.downtime_windows,
                )
            state.downtime_windows = 0
            state.consecutive_reconnects = 0
            if state.status != StreamStatus.PLAYING:
                state.set_status(StreamStatus.PLAYING)
            return

        state.downtime_windows += 1
        threshold = self.current_downtime_threshold

        if state.downtime_windows >= threshold:
            self._reconnect()
            return

        if state.status == StreamStatus.PLAYING:
            state.set_status(StreamStatus.DEGRADED)
            self._logger.warning("프레임 수신 없음, 감시 강화")
        self._logger.debug(
            "0 FPS 윈도우",
            downtime_windows=state.downtime_windows,
            threshold=threshold,
        )

    def _reconnect(self) -> None:
        """소스를 정지 후 재시작합니다. 성공 여부와 무관하게 윈도우 카운터를 초기화합니다."""
        state = self._state
        state.set_status(StreamStatus.RECONNECTING)
        state.record_reconnect()

        self._logger.warning(
            f"{state.downtime_windows}개 윈도우 연속 0 FPS, 재연결 시도 ({state.reconnect_count}회)",
            url=self._config.masked_url,
        )

        self._stop_source()
        state.downtime_windows = 0

        if self._stop_event.is_set():
            return

        if self._start_source():
            self._logger.info("재연결 완료")
        state.set_status(StreamStatus.PLAYING)

    def _start_source(self) -> bool:
        try:
            started = bool(self._source.start(self._config.url))
        except Exception as e:
            self._logger.error(f"소스 시작 오류: {e}", error=str(e))
            self._state.last_error = str(e)
            return False

        if not started:
            self._state.last_error = "소스 시작 실패"
            self._logger.warning(
                "소스 시작 실패, 재연결 주기에 재시도합니다",
                url=self._config.masked_url,
            )
        return started

    def _stop_source(self) -> None:
        try:
            self._source.stop()
        except Exception as e:
            self._state.last_error = str(e)
            self._logger.error(f"소스 정지 오류: {e}", error=str(e))


def calculate_downtime_threshold(
    consecutive_reconnects: int,
    base_threshold: int,
    max_threshold: int,
) -> int:
    """
    재연결 임계치에 지수 백오프를 적용합니다.

    Args:
        consecutive_reconnects: 정상 윈도우 없이 연속된 재연결 횟수 (0부터 시작)
        base_threshold: 기본 임계치 (윈도우 수)
        max_threshold: 최대 임계치 (윈도우 수)

    Returns:
        다음 재연결까지 필요한 연속 0 FPS 윈도우 수

    Example:
        >>> calculate_downtime_threshold(0, 5, 80)  # 5
        >>> calculate_downtime_threshold(1, 5, 80)  # 10
        >>> calculate_downtime_threshold(4, 5, 80)  # 80 (최대)
    """
    threshold = base_threshold * (2 ** consecutive_reconnects)
    return min(threshold, max(base_threshold, max_threshold))
