"""Configuration loading, stream list parsing and validation."""
import json

import pytest

from fps_monitor.common.errors import ConfigError, ErrorCode
from fps_monitor.interface.config.loader import ConfigLoader
from fps_monitor.interface.config.schema import MonitorConfig, SourceConfig, StreamEntry


@pytest.fixture
def loader():
    return ConfigLoader()


@pytest.mark.unit
class TestStreamList:

    def test_parse_lines(self, loader):
        lines = [
            "# 주차장 카메라",
            "",
            "rtsp://10.0.0.1/live",
            "   lobby rtsp://10.0.0.2/live   ",
            "rtsp://10.0.0.3/live",
        ]

        entries = loader.parse_stream_lines(lines)
        streams = loader.to_domain_streams(entries)

        assert [(s.stream_id, s.url) for s in streams] == [
            ("cam0", "rtsp://10.0.0.1/live"),
            ("lobby", "rtsp://10.0.0.2/live"),
            ("cam2", "rtsp://10.0.0.3/live"),
        ]

    def test_too_many_tokens(self, loader):
        with pytest.raises(ConfigError) as exc:
            loader.parse_stream_lines(["a b c"], config_path="streams.txt")

        assert exc.value.code == ErrorCode.CONFIG_PARSE_ERROR
        assert exc.value.details["line"] == 1

    def test_load_from_file(self, loader, tmp_path):
        path = tmp_path / "streams.txt"
        path.write_text("rtsp://a/1\nrtsp://b/2\n", encoding="utf-8")

        entries = loader.load_stream_list(path)

        assert [e.url for e in entries] == ["rtsp://a/1", "rtsp://b/2"]

    def test_missing_file(self, loader, tmp_path):
        with pytest.raises(ConfigError) as exc:
            loader.load_stream_list(tmp_path / "nope.txt")

        assert exc.value.code == ErrorCode.CONFIG_NOT_FOUND

    def test_empty_list_rejected(self, loader):
        with pytest.raises(ConfigError) as exc:
            loader.to_domain_streams(loader.parse_stream_lines(["# only comments", ""]))

        assert exc.value.code == ErrorCode.CONFIG_INVALID

    def test_generated_id_collision_rejected(self, loader):
        entries = [StreamEntry(stream_id="cam1", url="rtsp://a"), StreamEntry(url="rtsp://b")]

        with pytest.raises(ConfigError) as exc:
            loader.to_domain_streams(entries)

        assert exc.value.code == ErrorCode.CONFIG_INVALID


@pytest.mark.unit
class TestConfigFile:

    def test_defaults(self):
        config = MonitorConfig()

        assert config.interval_seconds == 1
        assert config.duration_seconds == 300.0
        assert config.downtime_threshold == 5
        assert config.display_threshold == 5
        assert config.reconnect_backoff is False
        assert config.source.backend == "ffmpeg"

    def test_load_from_file(self, loader, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(
            json.dumps(
                {
                    "interval_seconds": 2,
                    "duration_seconds": None,
                    "source": {"backend": "gstreamer", "codec": "h264"},
                    "streams": [{"stream_id": "gate", "url": "rtsp://10.0.0.9/live"}],
                }
            ),
            encoding="utf-8",
        )

        config = loader.load_from_file(path)

        assert config.interval_seconds == 2
        assert config.duration_seconds is None
        assert config.source.codec == "H264"
        assert config.streams[0].stream_id == "gate"

    def test_missing_file(self, loader, tmp_path):
        with pytest.raises(ConfigError) as exc:
            loader.load_from_file(tmp_path / "missing.json")

        assert exc.value.code == ErrorCode.CONFIG_NOT_FOUND

    def test_malformed_json(self, loader, tmp_path):
        path = tmp_path / "config.json"
        path.write_text("{not json", encoding="utf-8")

        with pytest.raises(ConfigError) as exc:
            loader.load_from_file(path)

        assert exc.value.code == ErrorCode.CONFIG_PARSE_ERROR

    def test_non_utf8_file(self, loader, tmp_path):
        path = tmp_path / "config.json"
        path.write_bytes(b"\xff\xfe{}")

        with pytest.raises(ConfigError) as exc:
            loader.load_from_file(path)

        assert exc.value.code == ErrorCode.CONFIG_PARSE_ERROR
        assert exc.value.config_path == str(path)

    def test_top_level_must_be_object(self, loader, tmp_path):
        path = tmp_path / "config.json"
        path.write_text("[1, 2]", encoding="utf-8")

        with pytest.raises(ConfigError) as exc:
            loader.load_from_file(path)

        assert exc.value.code == ErrorCode.CONFIG_PARSE_ERROR

    @pytest.mark.parametrize(
        "data",
        [
            {"interval_seconds": 0},
            {"downtime_threshold": 0},
            {"duration_seconds": -1},
            {"downtime_threshold": 10, "max_downtime_threshold": 5},
            {"source": {"codec": "MPEG2"}},
            {"source": {"backend": "vlc"}},
            {"streams": [{"stream_id": "a", "url": "x"}, {"stream_id": "a", "url": "y"}]},
            {"streams": [{"url": "   "}]},
        ],
    )
    def test_invalid_values(self, loader, data):
        with pytest.raises(ConfigError) as exc:
            loader.load_from_dict(data)

        assert exc.value.code == ErrorCode.CONFIG_INVALID

    def test_to_source_options(self, loader):
        options = loader.to_source_options(SourceConfig(backend="gstreamer", codec="vp8", latency_ms=0))

        assert options.backend == "gstreamer"
        assert options.codec == "VP8"
        assert options.latency_ms == 0
