"""Shared helpers for path lookup and value comparison."""
