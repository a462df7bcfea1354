"""
PnP Tracking: EPnP camera pose estimation

Recovers the camera rotation and translation relative to a reference object
from 3D-2D keypoint correspondences and known camera intrinsics.
"""

from .version import __version__
from .solvers import EPnPSolver, PnPResult
from .frontend import KeypointTracker, TrackingResult
from .utils import ConfigManager, CameraIntrinsics, Correspondence, setup_logging

__all__ = [
    '__version__',
    'EPnPSolver',
    'PnPResult',
    'KeypointTracker',
    'TrackingResult',
    'ConfigManager',
    'CameraIntrinsics',
    'Correspondence',
    'setup_logging',
    'create_tracker',
    'get_version'
]

# Package metadata
__author__ = "PnP Tracking Team"
__email__ = "team@pnp-tracking.dev"

def get_version():
    """获取版本信息"""
    return __version__

def create_tracker(config_path: str = None):
    """便捷的跟踪器创建函数"""
    config = ConfigManager.load_with_defaults(config_path)
    logging_config = config.get('Logging', {})
    setup_logging(logging_config.get('level', 'INFO'), logging_config.get('log_file'))
    return KeypointTracker(config)
