"""
Configuration module for the statement engine.

This module contains the default configuration dictionaries and the
per-rule-set settings object.
"""

from .detection_config import DETECTION_CONFIG, INGESTION_CONFIG, DetectionSettings

__all__ = [
    "DETECTION_CONFIG",
    "INGESTION_CONFIG",
    "DetectionSettings",
]
