"""healthday - single-day physiological metric aggregation."""

__version__ = "0.1.0"
