"""Shared utilities (logging setup and helpers)."""
