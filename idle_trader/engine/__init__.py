"""Simulation engines: pure or in-place transitions over a ``GameState``."""
