"""HAR performance metrics: totals, top-N rankings and per-host statistics."""

__version__ = "0.1.0"
