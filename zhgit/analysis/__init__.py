"""Commit analysis and pull request composition."""
