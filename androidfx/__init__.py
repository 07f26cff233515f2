"""Generates javafxports gradle projects and builds them for Android."""

__version__ = "0.1.0"
