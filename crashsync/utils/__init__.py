"""Utility helpers for crashsync."""
