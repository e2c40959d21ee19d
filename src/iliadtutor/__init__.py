"""Iliad Tutor - Homeric Greek study reader."""

__version__ = "0.1.0"
