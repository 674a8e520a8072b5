"""Prometheus metrics HTTP surface."""
