"""Shared utilities for tmsession."""
