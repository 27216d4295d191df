"""Geometry solvers, tracking rules and trajectory export for feature-based visual SLAM."""

__version__ = "0.1.0"