"""
오케스트레이터

설정된 스트림마다 감시자를 하나씩 만들고, 감시자 스레드와 리포터를 동시에 실행하며,
실행 시간이 끝나거나 중지 요청이 오면 전체를 순서대로 종료합니다.
"""

from __future__ import annotations

import threading
from typing import Callable, Sequence, TextIO

from fps_monitor.application.stream.registry import StatusRegistry
from fps_monitor.application.stream.reporter import Reporter
from fps_monitor.application.stream.supervisor import StreamSupervisor
from fps_monitor.common.errors import ErrorCode
from fps_monitor.common.logging import get_logger
from fps_monitor.domain.interfaces.source import FrameSource
from fps_monitor.domain.models.stream import StreamConfig

logger = get_logger(__name__, component="Orchestrator")

SourceFactory = Callable[[StreamConfig], FrameSource]


class Orchestrator:
    """
    스트림 감시 오케스트레이터

    활동(스레드) 수는 (스트림 수 + 1)로 실행 동안 고정됩니다.
    한 스트림의 소스 생성 실패는 해당 스트림만 건너뛰고 나머지 감시는 계속됩니다.

    Example:
        >>> orchestrator = Orchestrator(streams, create_source, interval=1)
        >>> orchestrator.run(duration=300)
    """

    JOIN_TIMEOUT_SECONDS = 5.0

    def __init__(
        self,
        streams: Sequence[StreamConfig],
        source_factory: SourceFactory,
        interval: int,
        registry: StatusRegistry | None = None,
        reporter: Reporter | None = None,
        downtime_threshold: int = StreamSupervisor.DEFAULT_DOWNTIME_THRESHOLD,
        reconnect_backoff: bool = False,
        max_downtime_threshold: int = StreamSupervisor.DEFAULT_MAX_DOWNTIME_THRESHOLD,
        display_threshold: int = Reporter.DEFAULT_DISPLAY_THRESHOLD,
        output: TextIO | None = None,
    ) -> None:
        """
        오케스트레이터 초기화

        Args:
            streams: 감시할 스트림 설정 목록
            source_factory: 스트림 설정으로 디코딩 협력자를 만드는 팩토리
            interval: 샘플링/리포트 주기 (초)
            registry: 상태 레지스트리 (기본: 새로 생성)
            reporter: 리포터 (기본: registry로 새로 생성)
            downtime_threshold: 재연결까지 필요한 연속 0 FPS 윈도우 수
            reconnect_backoff: 재연결 임계치 지수 백오프 사용 여부
            max_downtime_threshold: 백오프 적용 시 임계치 상한
            display_threshold: 리포터의 저하 표시 FPS
            output: 리포터 출력 스트림 (기본: sys.stdout)
        """
        if interval < 1:
            raise ValueError(f"interval은 1 이상이어야 합니다: {interval}")

        self._streams = list(streams)
        self._source_factory = source_factory
        self.interval = interval
        self._registry = registry if registry is not None else StatusRegistry()
        self._reporter = reporter or Reporter(
            self._registry,
            output=output,
            display_threshold=display_threshold,
        )
        self._downtime_threshold = downtime_threshold
        self._reconnect_backoff = reconnect_backoff
        self._max_downtime_threshold = max_downtime_threshold

        self._supervisors: list[StreamSupervisor] = []
        self._threads: list[threading.Thread] = []
        self._stop_event = threading.Event()
        self._lock = threading.Lock()
        self._started = False
        self._shut_down = False

    @property
    def registry(self) -> StatusRegistry:
        return self._registry

    @property
    def reporter(self) -> Reporter:
        return self._reporter

    @property
    def supervisors(self) -> list[StreamSupervisor]:
        return list(self._supervisors)

    def start(self) -> None:
        """감시자들을 만들고 시작한 뒤, 감시 루프와 리포터를 스레드로 실행합니다."""
        # shutdown()은 기동이 끝날 때까지 기다렸다가 만들어진 감시자 전부를 중지합니다
        with self._lock:
            if self._started or self._shut_down:
                return
            self._started = True

            self._supervisors = self._build_supervisors()

            for supervisor in self._supervisors:
                try:
                    supervisor.start()
                except Exception as e:
                    logger.error(
                        f"스트림 시작 실패: {supervisor.stream_id} - {e}",
                        stream_id=supervisor.stream_id,
                        error=str(e),
                    )

                thread = threading.Thread(
                    target=supervisor.run_loop,
                    args=(self.interval,),
                    name=f"stream_{supervisor.stream_id}",
                    daemon=True,
                )
                thread.start()
                self._threads.append(thread)

            self._reporter.start(self.interval)

        logger.info(
            f"스트림 감시 시작: {len(self._supervisors)}/{len(self._streams)}개",
            interval=self.interval,
        )

    def run(self, duration: float | None = None) -> None:
        """
        감시를 시작하고 실행 시간이 끝나거나 request_stop()이 호출될 때까지 대기한 뒤 종료합니다.

        Args:
            duration: 실행 시간 (초, None이면 중지 요청까지)
        """
        self.start()
        try:
            if duration is None:
                self._stop_event.wait()
            else:
                self._stop_event.wait(duration)
        finally:
            self.shutdown()

    def request_stop(self) -> None:
        """run()의 대기를 깨워 종료를 요청합니다. 시그널 핸들러에서 호출해도 안전합니다."""
        self._stop_event.set()

    def shutdown(self) -> None:
        """
        모든 감시자에 중지를 알리고, 감시 스레드가 끝나기를 기다린 뒤 리포터를 중지합니다.

        여러 번 호출해도 한 번만 수행됩니다.
        """
        with self._lock:
            if self._shut_down:
                return
            self._shut_down = True

        self._stop_event.set()
        logger.info("스트림 감시 종료 시작")

        for supervisor in self._supervisors:
            try:
                supervisor.stop()
            except Exception as e:
                logger.error(
                    f"스트림 중지 오류: {supervisor.stream_id} - {e}",
                    stream_id=supervisor.stream_id,
                    error=str(e),
                )

        for thread in self._threads:
            thread.join(timeout=self.JOIN_TIMEOUT_SECONDS)
            if thread.is_alive():
                logger.warning(f"감시 스레드 종료 지연: {thread.name}")

        self._reporter.stop()

        for supervisor in self._supervisors:
            summary = supervisor.state.to_summary()
            logger.info(
                f"스트림 요약: {supervisor.stream_id}",
                **{k: v for k, v in summary.items() if k != "stream_id"},
            )
        logger.info("스트림 감시 종료 완료")

    def _build_supervisors(self) -> list[StreamSupervisor]:
        supervisors: list[StreamSupervisor] = []

        for config in self._streams:
            try:
                source = self._source_factory(config)
                supervisor = StreamSupervisor(
                    config,
                    source,
                    self._registry,
                    downtime_threshold=self._downtime_threshold,
                    reconnect_backoff=self._reconnect_backoff,
                    max_downtime_threshold=self._max_downtime_threshold,
                )
            except Exception as e:
                logger.error(
                    f"스트림 구성 실패, 이번 실행에서 제외: {config.stream_id} - {e}",
                    code=ErrorCode.SOURCE_CREATE_FAILED.value,
                    stream_id=config.stream_id,
                    error=str(e),
                )
                continue

            supervisors.append(supervisor)

        return supervisors
