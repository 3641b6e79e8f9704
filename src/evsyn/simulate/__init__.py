"""Simulation of per-database survival data."""

from .populations import simulate_populations  # noqa: F401
