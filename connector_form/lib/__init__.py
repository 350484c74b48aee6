"""Shared helpers: errors, paths, loading, logging and settings."""
