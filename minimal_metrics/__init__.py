"""Minimal Metrics - privacy-preserving, self-hosted web analytics collector."""

__version__ = "0.1.0"
