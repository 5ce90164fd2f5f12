"""Shared helpers for the lockkey package."""
