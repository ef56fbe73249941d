"""Reddit Deep-Dive Analyst."""

__version__ = "1.0.0"
