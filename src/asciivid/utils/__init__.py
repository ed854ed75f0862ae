"""Utility functions for asciivid."""

from asciivid.utils.logging import get_logger

__all__ = ["get_logger"]
