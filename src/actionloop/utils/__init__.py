"""Shared helpers for actionloop."""
