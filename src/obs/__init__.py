"""Observability utilities for build runs."""
