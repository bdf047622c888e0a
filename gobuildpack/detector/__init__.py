"""Detector module for the application's dependency strategy.

Public API:
    detect(app_tree) -> DetectionResult
"""

from gobuildpack.detector.orchestrator import detect, detect_path
from gobuildpack.detector.types import AppTree, DetectionResult, Strategy

__all__ = ["detect", "detect_path", "AppTree", "DetectionResult", "Strategy"]
