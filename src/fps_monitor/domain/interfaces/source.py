"""
프레임 소스 인터페이스

스트림 감시자가 디코딩 협력자에 요구하는 최소 기능을 정의합니다.
코덱 협상, 디페이로딩 등은 구현체의 책임이며 감시자는 관여하지 않습니다.
"""

from __future__ import annotations

from typing import Callable, Protocol, runtime_checkable


FrameCallback = Callable[[], None]


@runtime_checkable
class FrameSource(Protocol):
    """
    디코딩 협력자 인터페이스

    구현체는 완전한 프레임 단위가 도착할 때마다 등록된 콜백을
    자신의 스레드에서 비동기로 호출해야 합니다.
    """

    def set_on_frame(self, callback: FrameCallback | None) -> None:
        """프레임 수신 콜백을 등록합니다."""
        ...

    def start(self, url: str) -> bool:
        """
        프레임 전달을 시작합니다.

        Returns:
            시작 성공 여부
        """
        ...

    def stop(self) -> None:
        """프레임 전달을 중지합니다."""
        ...
