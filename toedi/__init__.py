"""
Toedi - ingestion and analysis of recorded workouts.

This package turns uploaded FIT files into typed activities and derives:
- Average heart rate and training load
- Slope/speed/heart rate zone samples
- A per-user load curve fitted from heart rate thresholds

Everything for one upload is stored in a single transaction.
"""

__version__ = "0.1.0"

from toedi.config import Settings, load_settings
from toedi.pipeline import FitIngestionPipeline

__all__ = ["Settings", "load_settings", "FitIngestionPipeline"]
