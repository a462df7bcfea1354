"""
配置管理器
统一的配置文件加载和管理
"""

import copy
import logging
import yaml
from typing import Dict, Any
from pathlib import Path

logger = logging.getLogger('ConfigManager')

DEFAULT_CONFIG: Dict[str, Any] = {
    'EPnPSolver': {
        'parallel_hypotheses': False,
        'rotation_tolerance': 1e-6,
        'max_reprojection_error': 5.0,
    },
    'KeypointTracker': {
        'camera_matrix': [[2868.4, 0.0, 1219.5],
                          [0.0, 2872.1, 1591.7],
                          [0.0, 0.0, 1.0]],
        'min_matches': 4,
    },
    'Logging': {
        'level': 'INFO',
        'log_file': None,
    },
}

class ConfigManager:
    """配置管理器"""

    @staticmethod
    def load_config(config_path: str) -> Dict[str, Any]:
        """
        加载YAML配置文件

        Args:
            config_path: 配置文件路径

        Returns:
            config: 配置字典
        """
        config_path = Path(config_path)
        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        with open(config_path, 'r', encoding='utf-8') as f:
            config = yaml.safe_load(f) or {}

        # 处理继承关系
        if 'inherit_from' in config:
            parent_path = config_path.parent / config['inherit_from']
            parent_config = ConfigManager.load_config(parent_path)
            config = ConfigManager.merge_configs(parent_config, config)
            del config['inherit_from']  # 移除继承标记

        return config

    @staticmethod
    def load_with_defaults(config_path: str = None) -> Dict[str, Any]:
        """加载配置并补全默认值"""
        if config_path is None:
            return copy.deepcopy(DEFAULT_CONFIG)
        return ConfigManager.merge_configs(copy.deepcopy(DEFAULT_CONFIG), ConfigManager.load_config(config_path))

    @staticmethod
    def merge_configs(base_config: Dict[str, Any], override_config: Dict[str, Any]) -> Dict[str, Any]:
        """递归合并配置字典"""
        merged = base_config.copy()

        for key, value in override_config.items():
            if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
                merged[key] = ConfigManager.merge_configs(merged[key], value)
            else:
                merged[key] = value

        return merged

    @staticmethod
    def validate_config(config: Dict[str, Any]) -> bool:
        """验证配置有效性"""
        required_sections = ['EPnPSolver', 'KeypointTracker']

        for section in required_sections:
            if section not in config:
                logger.warning(f"Missing required section '{section}' in config")
                return False

        solver_config = config.get('EPnPSolver', {})
        tolerance = solver_config.get('rotation_tolerance', 1e-6)
        if not isinstance(tolerance, (int, float)) or tolerance <= 0:
            logger.warning(f"Invalid rotation_tolerance: {tolerance}")
            return False

        # 验证相机内参
        camera_matrix = config.get('KeypointTracker', {}).get('camera_matrix')
        if camera_matrix is not None:
            rows = [len(row) for row in camera_matrix] if isinstance(camera_matrix, list) else []
            if rows != [3, 3, 3]:
                logger.warning(f"camera_matrix must be 3x3, got {camera_matrix}")
                return False

        return True

    @staticmethod
    def save_config(config: Dict[str, Any], save_path: str):
        """保存配置到文件"""
        save_path = Path(save_path)
        save_path.parent.mkdir(parents=True, exist_ok=True)

        with open(save_path, 'w', encoding='utf-8') as f:
            yaml.dump(config, f, default_flow_style=False, allow_unicode=True, indent=2)
