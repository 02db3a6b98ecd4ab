"""
fps-monitor 진입점

명령줄 파싱, 설정/스트림 목록 로드, 컴포넌트 배선과 종료 처리를 담당합니다.

사용법:
    fps-monitor <interval_in_seconds> [--streams streams.txt] [--config config.json]
"""

from __future__ import annotations

import argparse
import signal
import sys
from typing import Sequence, TextIO

from fps_monitor import __version__
from fps_monitor.application.stream.orchestrator import Orchestrator, SourceFactory
from fps_monitor.common.errors import ConfigError, ErrorCode
from fps_monitor.common.logging import configure_logging, get_logger
from fps_monitor.domain.models.stream import StreamConfig
from fps_monitor.infrastructure.video.rtsp_source import SourceOptions, create_frame_source
from fps_monitor.interface.config.loader import ConfigLoader
from fps_monitor.interface.config.schema import MonitorConfig

logger = get_logger(__name__)

DEFAULT_STREAM_LIST = "streams.txt"


def _positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"정수가 아닙니다: {value!r}")
    if number < 1:
        raise argparse.ArgumentTypeError(f"1 이상이어야 합니다: {number}")
    return number


def _non_negative_float(value: str) -> float:
    try:
        number = float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"숫자가 아닙니다: {value!r}")
    if number < 0:
        raise argparse.ArgumentTypeError(f"0 이상이어야 합니다: {number}")
    return number


def build_parser() -> argparse.ArgumentParser:
    """명령줄 파서를 생성합니다."""
    parser = argparse.ArgumentParser(
        prog="fps-monitor",
        description="다중 스트림 FPS 감시 및 자동 재연결 도구",
    )
    parser.add_argument(
        "interval",
        type=_positive_int,
        help="샘플링/리포트 주기 (초, 정수)",
    )
    parser.add_argument(
        "--streams",
        default=None,
        help=f"줄 단위 스트림 목록 파일 (기본: 설정 파일의 streams, 없으면 {DEFAULT_STREAM_LIST})",
    )
    parser.add_argument("--config", default=None, help="JSON 설정 파일 경로")
    parser.add_argument(
        "--duration",
        type=_non_negative_float,
        default=None,
        help="실행 시간 (초, 0이면 중지 신호까지, 기본: 300)",
    )
    parser.add_argument(
        "--backend",
        choices=("ffmpeg", "gstreamer"),
        default=None,
        help="OpenCV 캡처 백엔드",
    )
    parser.add_argument("--log-level", default=None, help="로그 레벨 (DEBUG, INFO, ...)")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def load_runtime_config(
    args: argparse.Namespace,
    loader: ConfigLoader | None = None,
) -> tuple[MonitorConfig, list[StreamConfig]]:
    """
    설정 파일과 스트림 목록을 로드하고 명령줄 값을 덮어씁니다.

    스트림 목록은 --streams가 주어지면 그 파일에서, 아니면 설정 파일의 streams에서,
    둘 다 없으면 streams.txt에서 읽습니다.

    Raises:
        ConfigError: 설정 또는 스트림 목록을 읽을 수 없거나 유효하지 않은 경우
    """
    loader = loader or ConfigLoader()
    config = loader.load_from_file(args.config) if args.config else MonitorConfig()

    try:
        config.interval_seconds = args.interval
        if args.duration is not None:
            config.duration_seconds = args.duration or None
        if args.backend:
            config.source.backend = args.backend
        if args.log_level:
            config.log_level = args.log_level
    except ValueError as e:
        raise ConfigError(
            ErrorCode.CONFIG_INVALID,
            f"명령줄 값이 유효하지 않습니다: {e}",
            config_path=args.config,
        ) from e

    if args.streams or not config.streams:
        path = args.streams or DEFAULT_STREAM_LIST
        entries = loader.load_stream_list(path)
        streams = loader.to_domain_streams(entries, config_path=path)
    else:
        streams = loader.to_domain_streams(config.streams, config_path=args.config)

    return config, streams


def build_orchestrator(
    config: MonitorConfig,
    streams: Sequence[StreamConfig],
    source_factory: SourceFactory | None = None,
    output: TextIO | None = None,
) -> Orchestrator:
    """설정으로 오케스트레이터를 구성합니다."""
    if source_factory is None:
        options = ConfigLoader().to_source_options(config.source)

        def source_factory(stream: StreamConfig, _options: SourceOptions = options):
            return create_frame_source(stream, _options)

    return Orchestrator(
        streams,
        source_factory,
        interval=config.interval_seconds,
        downtime_threshold=config.downtime_threshold,
        reconnect_backoff=config.reconnect_backoff,
        max_downtime_threshold=config.max_downtime_threshold,
        display_threshold=config.display_threshold,
        output=output,
    )


def setup_signal_handlers(orchestrator: Orchestrator) -> None:
    """SIGINT/SIGTERM 수신 시 오케스트레이터에 종료를 요청합니다."""
    def signal_handler(signum, frame):
        logger.info(f"시그널 수신: {signum}")
        orchestrator.request_stop()

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)


def main(argv: Sequence[str] | None = None) -> int:
    """메인 진입점."""
    args = build_parser().parse_args(argv)

    try:
        config, streams = load_runtime_config(args)
    except ConfigError as e:
        logger.error(f"설정 오류: {e.message}", code=e.code.value, details=e.details)
        return 1

    configure_logging(level=config.log_level)

    orchestrator = build_orchestrator(config, streams)
    setup_signal_handlers(orchestrator)

    logger.info(
        f"FPS 감시 시작: 스트림 {len(streams)}개",
        interval=config.interval_seconds,
        duration=config.duration_seconds,
        backend=config.source.backend,
    )

    try:
        orchestrator.run(duration=config.duration_seconds)
    except KeyboardInterrupt:
        logger.info("사용자 중단")
        orchestrator.shutdown()

    return 0


if __name__ == "__main__":
    sys.exit(main())
