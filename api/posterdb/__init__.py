"""ThePosterDB artwork provider."""

__version__ = "1.0.0"
