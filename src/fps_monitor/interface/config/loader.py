"""
설정 로더

config.json과 줄 단위 스트림 목록 파일을 로드하고 Pydantic 스키마로 검증합니다.
검증된 설정을 런타임(StreamConfig, SourceOptions) 구조로 변환합니다.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Iterable

from pydantic import ValidationError

from fps_monitor.common.errors import ConfigError, ErrorCode
from fps_monitor.common.logging import get_logger
from fps_monitor.domain.models.stream import StreamConfig as DomainStreamConfig
from fps_monitor.infrastructure.video.rtsp_source import SourceOptions

from .schema import MonitorConfig, SourceConfig, StreamEntry

logger = get_logger(__name__)

DEFAULT_ID_PREFIX = "cam"


class ConfigLoader:
    """config.json 및 스트림 목록 로딩과 변환을 담당합니다."""

    def __init__(self, default_path: str = "config.json") -> None:
        self._default_path = Path(default_path)

    def load_from_file(self, path: str | Path | None = None) -> MonitorConfig:
        """파일에서 설정을 로드하고 검증합니다."""
        target = Path(path) if path else self._default_path

        if not target.exists():
            raise ConfigError(
                ErrorCode.CONFIG_NOT_FOUND,
                f"설정 파일을 찾을 수 없습니다: {target}",
                config_path=str(target),
            )

        try:
            content = target.read_text(encoding="utf-8")
            data = json.loads(content)
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            raise ConfigError(
                ErrorCode.CONFIG_PARSE_ERROR,
                f"설정 파일 파싱에 실패했습니다: {e}",
                config_path=str(target),
                details={"error": str(e)},
            ) from e

        if not isinstance(data, dict):
            raise ConfigError(
                ErrorCode.CONFIG_PARSE_ERROR,
                "설정 파일의 최상위는 객체여야 합니다",
                config_path=str(target),
            )

        return self.load_from_dict(data, config_path=str(target))

    def load_from_dict(
        self,
        data: dict[str, Any],
        config_path: str | None = None,
    ) -> MonitorConfig:
        """딕셔너리에서 설정을 검증합니다."""
        try:
            return MonitorConfig.model_validate(data)
        except ValidationError as e:
            logger.error("설정 검증 실패", errors=e.errors(), config_path=config_path)
            raise ConfigError(
                ErrorCode.CONFIG_INVALID,
                "설정 검증에 실패했습니다",
                config_path=config_path,
                details={"errors": e.errors()},
            ) from e

    def load_stream_list(self, path: str | Path) -> list[StreamEntry]:
        """
        줄 단위 스트림 목록 파일을 읽습니다.

        형식:
            - 한 줄에 하나의 스트림, 빈 줄과 '#' 주석은 무시
            - "<url>" 또는 "<stream_id> <url>"
        """
        target = Path(path)

        if not target.exists():
            raise ConfigError(
                ErrorCode.CONFIG_NOT_FOUND,
                f"스트림 목록 파일을 찾을 수 없습니다: {target}",
                config_path=str(target),
            )

        try:
            lines = target.read_text(encoding="utf-8").splitlines()
        except (OSError, UnicodeDecodeError) as e:
            raise ConfigError(
                ErrorCode.CONFIG_PARSE_ERROR,
                f"스트림 목록 파일을 읽을 수 없습니다: {e}",
                config_path=str(target),
            ) from e

        return self.parse_stream_lines(lines, config_path=str(target))

    def parse_stream_lines(
        self,
        lines: Iterable[str],
        config_path: str | None = None,
    ) -> list[StreamEntry]:
        """스트림 목록의 각 줄을 StreamEntry로 변환합니다."""
        entries: list[StreamEntry] = []

        for line_no, raw in enumerate(lines, start=1):
            line = raw.strip()
            if not line or line.startswith("#"):
                continue

            parts = line.split()
            if len(parts) == 1:
                entries.append(StreamEntry(url=parts[0]))
            elif len(parts) == 2:
                entries.append(StreamEntry(stream_id=parts[0], url=parts[1]))
            else:
                raise ConfigError(
                    ErrorCode.CONFIG_PARSE_ERROR,
                    f"{line_no}번째 줄 형식이 올바르지 않습니다: {line!r}",
                    config_path=config_path,
                    details={"line": line_no},
                )

        return entries

    def to_domain_streams(
        self,
        entries: Iterable[StreamEntry],
        config_path: str | None = None,
    ) -> list[DomainStreamConfig]:
        """
        StreamEntry 목록을 Domain StreamConfig로 변환합니다.

        ID가 없는 항목은 입력 순서 기준 "cam<index>"가 부여됩니다.
        """
        streams: list[DomainStreamConfig] = []
        seen: set[str] = set()

        for index, entry in enumerate(entries):
            stream_id = entry.stream_id or f"{DEFAULT_ID_PREFIX}{index}"
            if stream_id in seen:
                raise ConfigError(
                    ErrorCode.CONFIG_INVALID,
                    f"중복된 스트림 ID: {stream_id}",
                    config_path=config_path,
                    field_name="streams",
                )
            seen.add(stream_id)
            streams.append(DomainStreamConfig(stream_id=stream_id, url=entry.url))

        if not streams:
            raise ConfigError(
                ErrorCode.CONFIG_INVALID,
                "감시할 스트림이 없습니다",
                config_path=config_path,
                field_name="streams",
            )

        return streams

    def to_source_options(self, source: SourceConfig) -> SourceOptions:
        """SourceConfig(Pydantic)를 런타임 SourceOptions로 변환합니다."""
        return SourceOptions(
            backend=source.backend,
            transport=source.transport,
            latency_ms=source.latency_ms,
            codec=source.codec,
            open_timeout_ms=source.open_timeout_ms,
            read_timeout_ms=source.read_timeout_ms,
        )
