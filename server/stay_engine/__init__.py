"""Package resolution and booking availability engine for rentable stays."""

__version__ = "1.0.0"
