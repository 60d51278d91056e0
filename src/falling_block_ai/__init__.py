"""Move search and genetic weight tuning for a falling-block puzzle."""

__version__ = "0.1.0"
