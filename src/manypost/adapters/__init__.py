"""Adapters for external platforms."""
