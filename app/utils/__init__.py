"""Utility functions."""

from app.utils.ids import is_valid_uuid

__all__ = ["is_valid_uuid"]
