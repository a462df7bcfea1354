"""
Core modules
"""

from .base_tracker import BaseTracker

__all__ = ['BaseTracker']
