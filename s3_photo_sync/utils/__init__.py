"""Shared utilities: logging, retry and preflight checks."""
