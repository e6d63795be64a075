"""Satellite beam planning: vector geometry, a greedy beam solver, and a plan checker."""

__version__ = "0.1.0"
__all__ = ["geometry", "solver", "checker"]