"""Shared utilities: subprocess execution, retry and logging setup."""
