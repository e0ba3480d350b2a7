"""
Framework: Configuration and metrics core for stage profiling
"""

from .config import ProfilingConfig

__all__ = ["ProfilingConfig"]
