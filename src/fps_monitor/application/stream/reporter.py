"""
FPS 리포터

상태 레지스트리를 주기적으로 스냅샷하여 한 줄짜리 FPS 표로 출력합니다.
"""

from __future__ import annotations

import sys
import threading
from datetime import datetime
from typing import TextIO

from fps_monitor.application.stream.registry import StatusRegistry
from fps_monitor.common.errors import ErrorCode
from fps_monitor.common.logging import get_logger, set_component_context

logger = get_logger(__name__, component="Reporter")

# 저하 스트림 강조 (굵은 빨강)
_WARN_STYLE = "\033[1;31m"
_RESET_STYLE = "\033[0m"
# 색을 쓸 수 없는 출력(파일, 파이프)용 저하 표시
_PLAIN_MARKER = "[LOW]"


class Reporter:
    """
    FPS 리포터

    출력 형식:
        [2026-10-18 12:00:00] camA: 25 FPS, camB: 0 FPS

    display_threshold 미만인 스트림은 강조 표시됩니다.
    TTY에서는 굵은 빨강, 그 외 출력에서는 항목 뒤에 "[LOW]"를 붙입니다.
    이 값은 화면 표시용 FPS 하한이며 감시자의 재연결 임계치(윈도우 수)와는 별개입니다.

    Attributes:
        display_threshold: 정상/저하 구분 FPS
        colorize: ANSI 강조 사용 여부
    """

    DEFAULT_DISPLAY_THRESHOLD = 5
    JOIN_TIMEOUT_SECONDS = 5.0

    def __init__(
        self,
        registry: StatusRegistry,
        output: TextIO | None = None,
        display_threshold: int = DEFAULT_DISPLAY_THRESHOLD,
        colorize: bool | None = None,
    ) -> None:
        """
        리포터 초기화

        Args:
            registry: 상태 레지스트리
            output: 출력 스트림 (기본: sys.stdout)
            display_threshold: 정상/저하 구분 FPS
            colorize: ANSI 강조 사용 여부 (None이면 출력이 TTY일 때만)
        """
        self._registry = registry
        self._output = output
        self.display_threshold = display_threshold
        self._colorize = colorize

        self._thread: threading.Thread | None = None
        self._stop_event = threading.Event()

    @property
    def output(self) -> TextIO:
        return self._output if self._output is not None else sys.stdout

    @property
    def colorize(self) -> bool:
        if self._colorize is not None:
            return self._colorize
        isatty = getattr(self.output, "isatty", None)
        return bool(isatty and isatty())

    def start(self, interval: int) -> None:
        """리포터 스레드를 시작합니다."""
        if self._thread and self._thread.is_alive():
            return

        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self.run_loop,
            args=(interval,),
            name="fps_reporter",
            daemon=True,
        )
        self._thread.start()
        logger.debug("리포터 시작", interval=interval)

    def stop(self) -> None:
        """리포터를 중지합니다."""
        self._stop_event.set()

        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=self.JOIN_TIMEOUT_SECONDS)
        self._thread = None

    def run_loop(self, interval: int) -> None:
        """
        리포트 루프

        interval 초마다 한 줄을 출력합니다. 출력 실패는 기록만 하고 계속합니다.
        """
        set_component_context("Reporter")

        while not self._stop_event.is_set():
            if self._stop_event.wait(interval):
                break
            try:
                self.report_once()
            except Exception as e:
                logger.error(f"FPS 출력 실패: {e}", code=ErrorCode.INTERNAL_ERROR.value, error=str(e))

    def report_once(self) -> str:
        """스냅샷을 찍어 한 줄을 출력하고 그 내용을 반환합니다."""
        line = self.render_line(self._registry.snapshot())
        out = self.output
        out.write(line + "\n")
        out.flush()
        return line

    def render_line(
        self,
        snapshot: dict[str, int],
        now: datetime | None = None,
    ) -> str:
        """
        스냅샷을 출력 한 줄로 변환합니다.

        Args:
            snapshot: 스트림 ID → FPS (순서와 무관하게 ID 오름차순으로 출력)
            now: 타임스탬프 (기본: 현재 시각)
        """
        now = now or datetime.now()
        entries = ", ".join(
            self._format_entry(stream_id, fps)
            for stream_id, fps in sorted(snapshot.items())
        )
        return f"[{now.strftime('%Y-%m-%d %H:%M:%S')}] {entries}".rstrip()

    def _format_entry(self, stream_id: str, fps: int) -> str:
        text = f"{stream_id}: {fps} FPS"
        if fps >= self.display_threshold:
            return text
        if self.colorize:
            return f"{_WARN_STYLE}{text}{_RESET_STYLE}"
        return f"{text} {_PLAIN_MARKER}"
