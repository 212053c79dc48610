"""Utility helpers for the engine."""

from .fileio import read_yaml_file, read_yaml_text

__all__ = [
    "read_yaml_file",
    "read_yaml_text",
]
