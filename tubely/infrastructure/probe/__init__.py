"""
Frame probe infrastructure.

Wraps ffprobe to read stream geometry from staged uploads and classify
their orientation.
"""

from .classifier import (
    FFprobeClassifier,
    ProbeClassifier,
    StaticProbeClassifier,
    create_probe_classifier,
    parse_probe_output,
)

__all__ = [
    "FFprobeClassifier",
    "ProbeClassifier",
    "StaticProbeClassifier",
    "create_probe_classifier",
    "parse_probe_output",
]
