"""
Ground Ingestion Service
========================

Process wiring for the telemetry ingestion pipeline.
"""

from .config import IngestionConfig, StorageConfig
from .service import IngestionService

__all__ = [
    'IngestionConfig',
    'StorageConfig',
    'IngestionService',
]
