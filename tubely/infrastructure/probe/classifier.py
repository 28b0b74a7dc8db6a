"""
Frame probe and orientation classifier.

Runs ffprobe against a staged file, reads the per-stream width/height it
reports, and classifies the first stream's geometry.

The probe sits behind a protocol so tests and mock mode can swap in a
fixed-output classifier without needing an ffprobe binary on the box.
"""

import asyncio
import json
import logging
import subprocess
from typing import Optional

from ...core.media.errors import NoStreamFound, ProbeFailure
from ...core.media.models import Orientation
from ...core.media.orientation import StreamDimensions, classify_dimensions
from ...core.media.pipeline import ProbeClassifier

logger = logging.getLogger(__name__)


def parse_probe_output(output: str) -> list[StreamDimensions]:
    """
    Parse ffprobe's JSON into stream dimensions.

    Streams without a width/height (audio, data) are reported as 0x0 so
    the first-stream rule sees exactly what ffprobe listed first.
    """
    try:
        info = json.loads(output)
        streams = info.get("streams", [])
        return [
            StreamDimensions(
                width=int(stream.get("width", 0)),
                height=int(stream.get("height", 0)),
            )
            for stream in streams
        ]
    except (ValueError, TypeError, AttributeError) as e:
        raise ProbeFailure(f"Unparseable probe output: {e}") from e


def classify_streams(streams: list[StreamDimensions]) -> Orientation:
    """Classify the first reported stream. Zero streams fails closed."""
    if not streams:
        raise NoStreamFound("Probe reported no streams")

    first = streams[0]
    return classify_dimensions(first.width, first.height)


class FFprobeClassifier:
    """
    Classifier backed by the ffprobe binary.

    ffprobe is blocking, so it runs in a worker thread. A timeout is always
    applied; a wedged probe would otherwise hold the request forever.
    """

    def __init__(
        self,
        ffprobe_path: str = "ffprobe",
        timeout_seconds: float = 30.0,
    ) -> None:
        self._ffprobe = ffprobe_path
        self._timeout = timeout_seconds

    def _command(self, path: str) -> list[str]:
        return [
            self._ffprobe,
            "-v", "error",
            "-print_format", "json",
            "-show_streams",
            path,
        ]

    async def probe(self, path: str) -> list[StreamDimensions]:
        """Run ffprobe and return every stream it reports."""
        cmd = self._command(path)

        try:
            result = await asyncio.to_thread(
                subprocess.run,
                cmd,
                capture_output=True,
                text=True,
                timeout=self._timeout,
            )
        except FileNotFoundError as e:
            raise ProbeFailure(f"ffprobe not found at {self._ffprobe}") from e
        except subprocess.TimeoutExpired as e:
            raise ProbeFailure(f"ffprobe timed out after {self._timeout}s") from e

        if result.returncode != 0:
            logger.error(
                "ffprobe failed",
                extra={"path": path, "returncode": result.returncode, "stderr": result.stderr},
            )
            raise ProbeFailure(f"ffprobe exited with status {result.returncode}")

        return parse_probe_output(result.stdout)

    async def classify(self, path: str) -> Orientation:
        streams = await self.probe(path)
        orientation = classify_streams(streams)

        logger.info(
            "Classified video",
            extra={
                "path": path,
                "width": streams[0].width,
                "height": streams[0].height,
                "orientation": orientation.value,
            },
        )

        return orientation


class StaticProbeClassifier:
    """
    Fixed-output classifier for local development and tests.

    Reports one stream of the given size, or no streams at all when
    width/height are None. Counts calls so tests can assert the probe
    was (or wasn't) reached.
    """

    def __init__(self, width: Optional[int] = 1920, height: Optional[int] = 1080) -> None:
        if width is None or height is None:
            self._streams: list[StreamDimensions] = []
        else:
            self._streams = [StreamDimensions(width=width, height=height)]
        self.calls: list[str] = []
        logger.info("Initialized static probe classifier")

    async def classify(self, path: str) -> Orientation:
        self.calls.append(path)
        return classify_streams(self._streams)


def create_probe_classifier(
    ffprobe_path: str = "ffprobe",
    timeout_seconds: float = 30.0,
    mock_mode: bool = False,
) -> ProbeClassifier:
    """
    Factory function for the probe classifier.

    Args:
        ffprobe_path: Path to the ffprobe binary
        timeout_seconds: Hard limit on one probe run
        mock_mode: If True, return a static 1920x1080 classifier (no ffprobe required)
    """
    if mock_mode:
        return StaticProbeClassifier()

    return FFprobeClassifier(ffprobe_path=ffprobe_path, timeout_seconds=timeout_seconds)
