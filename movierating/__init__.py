"""Additive-effects rating prediction for MovieLens-style data."""

__version__ = "0.1.0"
