"""Shared code used across feature packages."""
