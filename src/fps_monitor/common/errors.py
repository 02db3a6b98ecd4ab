"""
예외와 에러 코드

스트림 단위 오류(StreamError, SourceError)는 감시자/오케스트레이터 경계에서 기록 후 흡수되고,
ConfigError만 CLI까지 올라가 종료 코드 1로 끝납니다.
"""

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """로그의 `code` 필드에 기록되는 에러 코드"""

    # 감시자 생명주기
    STREAM_ALREADY_RUNNING = "STREAM_ALREADY_RUNNING"
    STREAM_ALREADY_STOPPED = "STREAM_ALREADY_STOPPED"
    STREAM_CONNECTION_FAILED = "STREAM_CONNECTION_FAILED"
    STREAM_DECODE_ERROR = "STREAM_DECODE_ERROR"

    # 디코딩 협력자
    SOURCE_CREATE_FAILED = "SOURCE_CREATE_FAILED"
    SOURCE_UNSUPPORTED_CODEC = "SOURCE_UNSUPPORTED_CODEC"

    # 설정 / 스트림 목록
    CONFIG_INVALID = "CONFIG_INVALID"
    CONFIG_NOT_FOUND = "CONFIG_NOT_FOUND"
    CONFIG_PARSE_ERROR = "CONFIG_PARSE_ERROR"

    INTERNAL_ERROR = "INTERNAL_ERROR"


def _compact(**fields: Any) -> dict[str, Any]:
    """값이 비어 있는 항목을 뺀 딕셔너리"""
    return {key: value for key, value in fields.items() if value}


class MonitorError(Exception):
    """
    fps-monitor 예외의 공통 부모

    Attributes:
        code: ErrorCode
        message: 사람이 읽는 설명
        details: 로그에 함께 남길 부가 정보
    """

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = dict(details or {})

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code.value,
            "message": self.message,
            "details": self.details,
        }

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.code.value}: {self.message!r})"


class StreamError(MonitorError):
    """감시자 생명주기 전이 오류 (중복 시작, 중지 후 시작 등)"""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        stream_id: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.stream_id = stream_id
        super().__init__(code, message, {"stream_id": stream_id, **(details or {})})


class SourceError(MonitorError):
    """디코딩 협력자 생성/파이프라인 구성 오류"""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        stream_id: str,
        backend: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.stream_id = stream_id
        self.backend = backend
        merged = _compact(stream_id=stream_id, backend=backend)
        merged.update(details or {})
        super().__init__(code, message, merged)


class ConfigError(MonitorError):
    """
    설정 파일/스트림 목록 오류

    실행 전체를 중단시키는 유일한 오류입니다.

    Attributes:
        config_path: 문제가 된 파일 경로
        field_name: 문제가 된 필드
    """

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        config_path: str | None = None,
        field_name: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.config_path = config_path
        self.field_name = field_name
        merged = _compact(config_path=config_path, field_name=field_name)
        merged.update(details or {})
        super().__init__(code, message, merged)
