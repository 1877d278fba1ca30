"""QB rankings composite scoring engine."""

__version__ = "1.0.0"
