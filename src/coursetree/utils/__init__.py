"""Utilities for coursetree."""
