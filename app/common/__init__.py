"""Shared exceptions and the console logger used by maintenance scripts."""

__all__ = ["exceptions", "logger"]
