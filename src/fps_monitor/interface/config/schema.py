"""
설정 스키마 (Pydantic v2)

config.json을 검증하기 위한 스키마를 정의합니다.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

# Pydantic 모델은 Interface Layer에서만 외부 라이브러리에 의존합니다.

SUPPORTED_CODECS = ("auto", "H264", "H265", "JPEG", "VP8", "VP9", "H263")


class StreamEntry(BaseModel):
    """스트림 항목 스키마."""

    model_config = ConfigDict(extra="ignore", validate_assignment=True)

    stream_id: str | None = Field(None, description="스트림 ID (없으면 cam<index>)")
    url: str = Field(..., description="소스 위치 (RTSP URL 등)")

    @field_validator("url")
    @classmethod
    def not_empty(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("url은 비워둘 수 없습니다")
        return value

    @field_validator("stream_id")
    @classmethod
    def validate_stream_id(cls, value: str | None) -> str | None:
        if value is not None and not value.strip():
            raise ValueError("stream_id는 공백일 수 없습니다")
        return value.strip() if value is not None else None


class SourceConfig(BaseModel):
    """디코딩 협력자(프레임 소스) 설정 스키마."""

    model_config = ConfigDict(extra="ignore", validate_assignment=True)

    backend: Literal["ffmpeg", "gstreamer"] = Field("ffmpeg", description="OpenCV 캡처 백엔드")
    transport: Literal["tcp", "udp"] = Field("tcp", description="RTSP 전송 프로토콜")
    latency_ms: int = Field(200, description="GStreamer rtspsrc 지연 (밀리초)")
    codec: str = Field("auto", description="GStreamer 코덱 (auto면 decodebin)")
    open_timeout_ms: int = Field(10000, description="연결 타임아웃 (밀리초)")
    read_timeout_ms: int = Field(5000, description="프레임 읽기 타임아웃 (밀리초)")

    @field_validator("codec")
    @classmethod
    def validate_codec(cls, value: str) -> str:
        normalized = value if value == "auto" else value.upper()
        if normalized not in SUPPORTED_CODECS:
            raise ValueError(f"지원하지 않는 코덱입니다: {value} (지원: {', '.join(SUPPORTED_CODECS)})")
        return normalized

    @field_validator("latency_ms")
    @classmethod
    def validate_latency(cls, value: int) -> int:
        if value < 0:
            raise ValueError("latency_ms는 0 이상이어야 합니다")
        return value

    @field_validator("open_timeout_ms", "read_timeout_ms")
    @classmethod
    def validate_timeouts(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("타임아웃은 0보다 커야 합니다")
        return value


class MonitorConfig(BaseModel):
    """FPS 감시 전체 설정 스키마."""

    model_config = ConfigDict(extra="ignore", validate_assignment=True)

    interval_seconds: int = Field(1, description="샘플링/리포트 주기 (초)")
    duration_seconds: float | None = Field(300.0, description="실행 시간 (초, null이면 중지 요청까지)")
    downtime_threshold: int = Field(5, description="재연결까지 필요한 연속 0 FPS 윈도우 수")
    display_threshold: int = Field(5, description="저하 표시 FPS 하한")
    reconnect_backoff: bool = Field(False, description="재연결 임계치 지수 백오프 사용 여부")
    max_downtime_threshold: int = Field(80, description="백오프 적용 시 임계치 상한 (윈도우 수)")
    log_level: str = Field("INFO", description="로그 레벨")

    source: SourceConfig = Field(default_factory=SourceConfig, description="프레임 소스 설정")
    streams: list[StreamEntry] = Field(default_factory=list, description="스트림 목록")

    @field_validator("interval_seconds")
    @classmethod
    def validate_interval(cls, value: int) -> int:
        if value < 1:
            raise ValueError("interval_seconds는 1 이상이어야 합니다")
        return value

    @field_validator("duration_seconds")
    @classmethod
    def validate_duration(cls, value: float | None) -> float | None:
        if value is not None and value <= 0:
            raise ValueError("duration_seconds는 0보다 커야 합니다")
        return value

    @field_validator("downtime_threshold")
    @classmethod
    def validate_downtime(cls, value: int) -> int:
        if value < 1:
            raise ValueError("downtime_threshold는 1 이상이어야 합니다")
        return value

    @field_validator("display_threshold")
    @classmethod
    def validate_display(cls, value: int) -> int:
        if value < 0:
            raise ValueError("display_threshold는 0 이상이어야 합니다")
        return value

    @model_validator(mode="after")
    def validate_values(self) -> "MonitorConfig":
        if self.max_downtime_threshold < self.downtime_threshold:
            raise ValueError("max_downtime_threshold는 downtime_threshold 이상이어야 합니다")

        stream_ids = [s.stream_id for s in self.streams if s.stream_id]
        if len(stream_ids) != len(set(stream_ids)):
            raise ValueError("스트림 ID가 중복됩니다")
        return self
