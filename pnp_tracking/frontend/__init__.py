"""
Frontend modules
"""

from .keypoint_tracker import KeypointTracker, TrackingResult

__all__ = [
    'KeypointTracker',
    'TrackingResult'
]
