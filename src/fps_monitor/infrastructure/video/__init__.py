# -*- coding: utf-8 -*-
"""
Video Infrastructure 패키지.

RTSP 스트림 연결과 프레임 수신 콜백을 담당합니다.
"""

from fps_monitor.infrastructure.video.rtsp_source import (
    RTSPFrameSource,
    SourceOptions,
    build_gstreamer_pipeline,
    create_frame_source,
)

__all__ = [
    "RTSPFrameSource",
    "SourceOptions",
    "build_gstreamer_pipeline",
    "create_frame_source",
]
