"""Technical indicator and fundamentals toolkit for equity price series."""

__version__ = "0.1.0"
