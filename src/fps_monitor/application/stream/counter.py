"""
프레임 카운터

디코딩 협력자의 콜백 스레드와 감시 스레드 사이에서 공유되는
스트림별 프레임 카운터입니다.
"""

from __future__ import annotations

import threading


class FrameCounter:
    """
    스트림별 프레임 카운터

    record_frame()과 sample_and_reset()은 같은 락을 사용하므로
    하나의 프레임은 정확히 하나의 샘플링 윈도우에만 집계됩니다.
    락은 카운터 갱신 동안에만 보유합니다.
    """

    def __init__(self) -> None:
        self._count = 0
        self._lock = threading.Lock()

    def record_frame(self) -> None:
        """프레임 1개를 기록합니다. (협력자 콜백 스레드에서 호출)"""
        with self._lock:
            self._count += 1

    def sample_and_reset(self) -> int:
        """
        현재 카운트를 읽고 0으로 초기화합니다.

        Returns:
            초기화 직전의 프레임 수
        """
        with self._lock:
            count = self._count
            self._count = 0
        return count

    @property
    def pending(self) -> int:
        """아직 샘플링되지 않은 프레임 수"""
        with self._lock:
            return self._count
