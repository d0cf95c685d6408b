"""Shared helpers: geometry math, history, errors and logging."""
