"""
工具模块
包含配置管理、日志和数据结构
"""

from .config_manager import ConfigManager
from .data_structures import CameraIntrinsics, CandidateSolution, Correspondence
from .logger import setup_logging

__all__ = [
    'ConfigManager',
    'CameraIntrinsics',
    'CandidateSolution',
    'Correspondence',
    'setup_logging'
]
