"""
Tests for orientation classification and the ffprobe wrapper.

ffprobe itself is never run: subprocess.run is replaced with a fake that
returns canned output, so these tests pass on machines without ffmpeg.
"""

import asyncio
import json
import subprocess

import pytest

from tubely.core.media.errors import NoStreamFound, ProbeFailure
from tubely.core.media.models import Orientation
from tubely.core.media.orientation import StreamDimensions, classify_dimensions
from tubely.infrastructure.probe.classifier import (
    FFprobeClassifier,
    StaticProbeClassifier,
    classify_streams,
    create_probe_classifier,
    parse_probe_output,
)


def probe_json(*dimensions) -> str:
    return json.dumps({
        "streams": [
            {"index": i, "codec_type": "video", "width": w, "height": h}
            for i, (w, h) in enumerate(dimensions)
        ]
    })


# ---------------------------------------------------------------------------
# Geometry Rules
# ---------------------------------------------------------------------------

class TestClassifyDimensions:
    """Tests for the cross-multiplied tolerance rule."""

    def test_full_hd_is_landscape(self):
        assert classify_dimensions(1920, 1080) == Orientation.LANDSCAPE

    def test_vertical_full_hd_is_portrait(self):
        assert classify_dimensions(1080, 1920) == Orientation.PORTRAIT

    def test_square_is_other(self):
        assert classify_dimensions(1000, 1000) == Orientation.OTHER

    def test_four_by_three_is_other(self):
        assert classify_dimensions(640, 480) == Orientation.OTHER

    def test_near_miss_within_tolerance_still_matches(self):
        """1921x1080 is off by 9 product units, inside the tolerance."""
        assert classify_dimensions(1921, 1080) == Orientation.LANDSCAPE
        assert classify_dimensions(1080, 1921) == Orientation.PORTRAIT

    def test_difference_of_exactly_ten_is_not_a_match(self):
        """6x4: |6*9 - 4*16| == 10, which is not below the tolerance."""
        assert classify_dimensions(6, 4) == Orientation.OTHER

    @pytest.mark.parametrize("width,height", [
        (16, 9),
        (1280, 720),
        (9, 16),
        (720, 1280),
        (1000, 1000),
        (640, 480),
        (1, 3),
    ])
    def test_scaling_both_sides_keeps_classification(self, width, height):
        """Multiplying width and height by the same k never changes the result."""
        expected = classify_dimensions(width, height)

        for k in range(1, 60):
            assert classify_dimensions(k * width, k * height) == expected


class TestParseProbeOutput:
    """Tests for reading ffprobe's JSON."""

    def test_reads_every_stream_in_order(self):
        streams = parse_probe_output(probe_json((1920, 1080), (640, 360)))

        assert streams == [StreamDimensions(1920, 1080), StreamDimensions(640, 360)]

    def test_streams_without_geometry_are_zero(self):
        output = json.dumps({"streams": [{"codec_type": "audio"}]})

        assert parse_probe_output(output) == [StreamDimensions(0, 0)]

    def test_audio_first_file_lands_under_landscape(self):
        """Only the first stream counts, and 0x0 matches 16:9 with zero difference."""
        output = json.dumps({"streams": [
            {"index": 0, "codec_type": "audio"},
            {"index": 1, "codec_type": "video", "width": 1080, "height": 1920},
        ]})

        assert classify_streams(parse_probe_output(output)) == Orientation.LANDSCAPE

    def test_zero_height_stream_is_other(self):
        assert classify_dimensions(1920, 0) == Orientation.OTHER

    def test_missing_streams_key_means_no_streams(self):
        assert parse_probe_output("{}") == []

    def test_garbage_is_a_probe_failure(self):
        with pytest.raises(ProbeFailure, match="Unparseable"):
            parse_probe_output("not json at all")

    def test_non_object_json_is_a_probe_failure(self):
        with pytest.raises(ProbeFailure):
            parse_probe_output("[1, 2, 3]")


# ---------------------------------------------------------------------------
# FFprobe Classifier
# ---------------------------------------------------------------------------

class FakeRun:
    """Stands in for subprocess.run and remembers what it was asked to run."""

    def __init__(self, stdout="", returncode=0, raises=None):
        self.stdout = stdout
        self.returncode = returncode
        self.raises = raises
        self.commands = []

    def __call__(self, cmd, **kwargs):
        self.commands.append((cmd, kwargs))
        if self.raises is not None:
            raise self.raises
        return subprocess.CompletedProcess(cmd, self.returncode, stdout=self.stdout, stderr="boom")


@pytest.fixture
def video_file(tmp_path):
    path = tmp_path / "clip.mp4"
    path.write_bytes(b"not really an mp4")
    return path


class TestFFprobeClassifier:
    """Tests for the subprocess-backed classifier."""

    def test_classifies_first_stream(self, monkeypatch, video_file):
        fake = FakeRun(stdout=probe_json((1080, 1920), (1920, 1080)))
        monkeypatch.setattr(subprocess, "run", fake)

        orientation = asyncio.run(FFprobeClassifier().classify(str(video_file)))

        assert orientation == Orientation.PORTRAIT

    def test_runs_ffprobe_with_json_stream_output(self, monkeypatch, video_file):
        fake = FakeRun(stdout=probe_json((1920, 1080)))
        monkeypatch.setattr(subprocess, "run", fake)

        asyncio.run(FFprobeClassifier("/opt/bin/ffprobe", timeout_seconds=5).classify(str(video_file)))

        cmd, kwargs = fake.commands[0]
        assert cmd[0] == "/opt/bin/ffprobe"
        assert "-show_streams" in cmd
        assert cmd[cmd.index("-print_format") + 1] == "json"
        assert cmd[-1] == str(video_file)
        assert kwargs["timeout"] == 5

    def test_does_not_modify_the_file(self, monkeypatch, video_file):
        monkeypatch.setattr(subprocess, "run", FakeRun(stdout=probe_json((1920, 1080))))

        asyncio.run(FFprobeClassifier().classify(str(video_file)))

        assert video_file.read_bytes() == b"not really an mp4"

    def test_aspect_mismatch_is_not_an_error(self, monkeypatch, video_file):
        monkeypatch.setattr(subprocess, "run", FakeRun(stdout=probe_json((1000, 1000))))

        orientation = asyncio.run(FFprobeClassifier().classify(str(video_file)))

        assert orientation == Orientation.OTHER

    def test_no_streams_fails_closed(self, monkeypatch, video_file):
        monkeypatch.setattr(subprocess, "run", FakeRun(stdout=json.dumps({"streams": []})))

        with pytest.raises(NoStreamFound):
            asyncio.run(FFprobeClassifier().classify(str(video_file)))

    def test_nonzero_exit_is_probe_failure(self, monkeypatch, video_file):
        monkeypatch.setattr(subprocess, "run", FakeRun(returncode=1))

        with pytest.raises(ProbeFailure, match="status 1"):
            asyncio.run(FFprobeClassifier().classify(str(video_file)))

    def test_timeout_is_probe_failure(self, monkeypatch, video_file):
        fake = FakeRun(raises=subprocess.TimeoutExpired(cmd="ffprobe", timeout=1))
        monkeypatch.setattr(subprocess, "run", fake)

        with pytest.raises(ProbeFailure, match="timed out"):
            asyncio.run(FFprobeClassifier(timeout_seconds=1).classify(str(video_file)))

    def test_missing_binary_is_probe_failure(self, monkeypatch, video_file):
        monkeypatch.setattr(subprocess, "run", FakeRun(raises=FileNotFoundError("ffprobe")))

        with pytest.raises(ProbeFailure, match="not found"):
            asyncio.run(FFprobeClassifier().classify(str(video_file)))


class TestStaticProbeClassifier:
    """Tests for the fixed-output classifier used in mock mode."""

    def test_reports_configured_geometry(self):
        probe = StaticProbeClassifier(width=720, height=1280)

        assert asyncio.run(probe.classify("/tmp/x.mp4")) == Orientation.PORTRAIT
        assert probe.calls == ["/tmp/x.mp4"]

    def test_no_geometry_means_no_streams(self):
        probe = StaticProbeClassifier(width=None, height=None)

        with pytest.raises(NoStreamFound):
            asyncio.run(probe.classify("/tmp/x.mp4"))

    def test_factory_respects_mock_mode(self):
        assert isinstance(create_probe_classifier(mock_mode=True), StaticProbeClassifier)
        assert isinstance(create_probe_classifier(mock_mode=False), FFprobeClassifier)
