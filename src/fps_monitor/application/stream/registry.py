"""
상태 레지스트리

모든 스트림 감시자가 쓰고 리포터가 읽는 프로세스 전역 FPS 맵입니다.
"""

from __future__ import annotations

import threading


class StatusRegistry:
    """
    스트림 ID → 최신 FPS 매핑

    모든 읽기/쓰기는 단일 락으로 직렬화됩니다.
    외부에는 스냅샷 복사본만 노출하여 쓰기 도중의 맵을 관찰할 수 없게 합니다.
    항목은 실행 중 삭제되지 않습니다.

    Example:
        >>> registry = StatusRegistry()
        >>> registry.set("camB", 12)
        >>> registry.set("camA", 0)
        >>> registry.snapshot()
        {'camA': 0, 'camB': 12}
    """

    def __init__(self) -> None:
        self._fps: dict[str, int] = {}
        self._lock = threading.Lock()

    def set(self, stream_id: str, fps: int) -> None:
        """스트림의 최신 FPS를 기록합니다 (upsert)."""
        with self._lock:
            self._fps[stream_id] = fps

    def get(self, stream_id: str) -> int | None:
        """스트림의 최신 FPS를 반환합니다. 샘플이 없으면 None."""
        with self._lock:
            return self._fps.get(stream_id)

    def snapshot(self) -> dict[str, int]:
        """
        스트림 ID 오름차순으로 정렬된 전체 맵의 복사본을 반환합니다.

        락 안에서는 얕은 복사만 수행하고 정렬은 락 밖에서 합니다.
        """
        with self._lock:
            items = list(self._fps.items())
        return dict(sorted(items))

    def __len__(self) -> int:
        with self._lock:
            return len(self._fps)

    def __contains__(self, stream_id: object) -> bool:
        with self._lock:
            return stream_id in self._fps
