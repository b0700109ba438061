"""Shared helpers for the vectorsync test suite."""
