"""
로깅 모듈

loguru 싱크 구성과 스트림/컴포넌트 컨텍스트가 붙는 로거를 제공합니다.

- 콘솔: 컬러 한 줄 형식 (기본)
- JSON: orjson 직렬화 한 줄 형식 (LOG_FORMAT=json, 로그 파일)

진단 로그는 stderr로 출력합니다. stdout은 리포터의 FPS 표 전용입니다.
"""

import os
import sys
from contextvars import ContextVar
from functools import lru_cache
from typing import Any

import orjson
from loguru import logger

# 감시/리더 스레드가 자신의 스트림 ID를 심어두는 컨텍스트
_stream_ctx: ContextVar[str | None] = ContextVar("fps_monitor_stream", default=None)
_component_ctx: ContextVar[str | None] = ContextVar("fps_monitor_component", default=None)

_LEVEL_NAMES = ("TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL")
_LEVEL_ALIASES = {"WARN": "WARNING", "FATAL": "CRITICAL"}

_CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> "
    "<level>{level: <8}</level> "
    "<cyan>{name}</cyan>:<cyan>{line}</cyan>"
    "{extra[_context]} - <level>{message}</level>\n"
)


def set_stream_context(stream_id: str | None) -> None:
    """현재 스레드의 로그에 stream_id를 붙입니다."""
    _stream_ctx.set(stream_id)


def set_component_context(component: str | None) -> None:
    """현재 스레드의 로그에 component를 붙입니다."""
    _component_ctx.set(component)


def _resolve_level(level: str) -> str:
    name = level.strip().upper()
    name = _LEVEL_ALIASES.get(name, name)
    return name if name in _LEVEL_NAMES else "INFO"


def _json_formatter(record: dict[str, Any]) -> str:
    """레코드를 JSON 한 줄로 직렬화합니다."""
    payload: dict[str, Any] = {
        "timestamp": record["time"].isoformat(timespec="milliseconds"),
        "level": record["level"].name,
        "logger": record["name"],
        "message": record["message"],
    }
    payload.update(
        (key, value) for key, value in record["extra"].items() if not key.startswith("_")
    )

    exc = record["exception"]
    if exc:
        payload["exception"] = {
            "type": exc.type.__name__ if exc.type else None,
            "value": str(exc.value) if exc.value else None,
        }

    line = orjson.dumps(payload, default=str).decode("utf-8")
    # loguru가 반환값을 format 템플릿으로 다시 해석함
    return line.replace("{", "{{").replace("}", "}}") + "\n"


def _console_formatter(record: dict[str, Any]) -> str:
    extra = record["extra"]
    tags = [
        f"{key}={extra[key]}"
        for key in ("stream_id", "component")
        if extra.get(key)
    ]
    extra["_context"] = f" [{' '.join(tags)}]" if tags else ""

    if record["exception"]:
        return _CONSOLE_FORMAT + "{exception}"
    return _CONSOLE_FORMAT


def configure_logging(
    level: str = "INFO",
    json_output: bool | None = None,
    log_file: str | None = None,
) -> None:
    """
    loguru 싱크를 다시 구성합니다.

    Args:
        level: 로그 레벨. LOG_LEVEL 환경변수가 있으면 그 값이 우선합니다.
        json_output: JSON 출력 여부 (None이면 LOG_FORMAT=json 여부)
        log_file: 회전 로그 파일 경로 (None이면 LOG_FILE 환경변수)
    """
    resolved = _resolve_level(os.environ.get("LOG_LEVEL") or level)
    if json_output is None:
        json_output = os.environ.get("LOG_FORMAT", "").lower() == "json"
    log_file = log_file or os.environ.get("LOG_FILE")

    logger.remove()
    logger.add(
        sys.stderr,
        level=resolved,
        format=_json_formatter if json_output else _console_formatter,
        colorize=not json_output,
    )

    if log_file:
        logger.add(
            log_file,
            level=resolved,
            format=_json_formatter,
            rotation="50 MB",
            retention=5,
            compression="gz",
            enqueue=True,
        )

    logger.debug(f"로깅 구성: level={resolved} json={json_output} file={log_file}")


class BoundLogger:
    """
    컨텍스트 로거

    생성 시 지정한 component/stream_id와 현재 스레드 컨텍스트를
    loguru extra로 붙여 기록합니다. 호출 시 키워드 인자도 extra에 들어갑니다.
    """

    def __init__(
        self,
        name: str,
        component: str | None = None,
        stream_id: str | None = None,
    ) -> None:
        self.name = name
        self.component = component
        self.stream_id = stream_id
        self._logger = logger.bind(name=name)

    def _context(self, fields: dict[str, Any]) -> dict[str, Any]:
        context: dict[str, Any] = {}
        stream_id = _stream_ctx.get() or self.stream_id
        component = _component_ctx.get() or self.component
        if stream_id:
            context["stream_id"] = stream_id
        if component:
            context["component"] = component
        context.update(fields)
        return context

    def _log(self, level: str, message: str, fields: dict[str, Any], exception: bool = False) -> None:
        # depth=2: 래퍼 메서드를 건너뛰고 호출 위치를 기록
        bound = self._logger.bind(**self._context(fields)).opt(depth=2, exception=exception)
        bound.log(level, message)

    def debug(self, message: str, **kwargs: Any) -> None:
        self._log("DEBUG", message, kwargs)

    def info(self, message: str, **kwargs: Any) -> None:
        self._log("INFO", message, kwargs)

    def warning(self, message: str, **kwargs: Any) -> None:
        self._log("WARNING", message, kwargs)

    def error(self, message: str, **kwargs: Any) -> None:
        self._log("ERROR", message, kwargs)

    def exception(self, message: str, **kwargs: Any) -> None:
        """현재 처리 중인 예외의 트레이스백과 함께 ERROR로 기록합니다."""
        self._log("ERROR", message, kwargs, exception=True)


@lru_cache(maxsize=256)
def get_logger(
    name: str,
    component: str | None = None,
    stream_id: str | None = None,
) -> BoundLogger:
    """
    모듈/스트림용 로거를 반환합니다. 같은 인자면 같은 인스턴스입니다.

    Example:
        >>> log = get_logger(__name__, stream_id="cam0")
        >>> log.warning("프레임 없음", downtime_windows=3)
    """
    return BoundLogger(name, component=component, stream_id=stream_id)


if not os.environ.get("FPS_MONITOR_SKIP_DEFAULT_LOGGING"):
    configure_logging()
