"""
关键点跟踪器
由模板关键点与当前帧关键点的匹配结果估计相机位姿
"""

import logging
import time
import torch
import numpy as np
from typing import Dict, Any, Optional
from dataclasses import dataclass

from ..core.base_tracker import BaseTracker
from ..solvers.epnp_solver import EPnPSolver, PnPResult

logger = logging.getLogger('KeypointTracker')

# 未配置内参时使用的默认相机矩阵
DEFAULT_CAMERA_MATRIX = np.array([[2868.4, 0.0, 1219.5],
                                  [0.0, 2872.1, 1591.7],
                                  [0.0, 0.0, 1.0]])

@dataclass
class TrackingResult:
    """跟踪结果数据结构"""
    success: bool
    pose: torch.Tensor           # 4x4位姿矩阵
    R: torch.Tensor              # 旋转矩阵 [3, 3]
    T: torch.Tensor              # 平移向量 [3]
    tracking_method: str         # 胜出的EPnP近似方法
    num_matches: int             # 对应点数量
    reprojection_error: float    # 重投影误差
    processing_time: float       # 处理时间(ms)

class KeypointTracker(BaseTracker):
    """基于EPnP的关键点跟踪器"""

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        config = config or {}
        super().__init__(config)

        tracker_config = config.get('KeypointTracker', {})
        self.solver = EPnPSolver(config.get('EPnPSolver', {}))
        self.min_matches = tracker_config.get('min_matches', 4)
        self.max_reprojection_error = self.solver.max_reprojection_error

        camera_matrix = tracker_config.get('camera_matrix')
        self.camera_matrix = None
        if camera_matrix is not None:
            self.set_camera_matrix(camera_matrix)

        self.previous_pose = torch.eye(4, dtype=torch.float64)
        self.last_result: Optional[PnPResult] = None

    def get_camera_matrix(self) -> np.ndarray:
        """获取相机内参，未设置时使用默认值"""
        if self.camera_matrix is None:
            self.camera_matrix = DEFAULT_CAMERA_MATRIX.copy()
        return self.camera_matrix

    def set_camera_matrix(self, camera_matrix):
        """设置相机内参，接受3x3矩阵或9个元素的行优先数组"""
        camera_matrix = np.asarray(camera_matrix, dtype=np.float64)
        if camera_matrix.size != 9:
            raise ValueError(f"Camera matrix must have 9 elements, got {camera_matrix.size}")
        self.camera_matrix = camera_matrix.reshape(3, 3)

    def estimate_pose(self, matches: Dict[str, Any]) -> PnPResult:
        """由匹配结果估计位姿"""
        return self.solver.solve_pnp_with_matches(matches, self.get_camera_matrix())

    def track(self, matches: Dict[str, Any]) -> TrackingResult:
        """
        跟踪一帧

        匹配为空或求解失败时保留上一帧位姿。

        Args:
            matches: 包含 'objectKeypoints' 和 'imageKeypoints' 的匹配结果

        Returns:
            result: 跟踪结果
        """
        start_time = time.time()

        num_matches = self._count_matches(matches)
        if num_matches < self.min_matches:
            logger.debug(f"Too few matches to track: {num_matches} < {self.min_matches}")
            return self._failed_result(num_matches, (time.time() - start_time) * 1000)

        result = self.estimate_pose(matches)
        self.last_result = result

        if not result.is_reliable(self.max_reprojection_error):
            if result.success:
                logger.info(f"Rejected pose with reprojection error {result.reprojection_error:.3f}")
            return self._failed_result(num_matches, (time.time() - start_time) * 1000,
                                       reprojection_error=result.reprojection_error)

        self.previous_pose = result.pose_matrix()

        return TrackingResult(
            success=True,
            pose=self.previous_pose.clone(),
            R=result.R,
            T=result.T,
            tracking_method=result.method,
            num_matches=num_matches,
            reprojection_error=result.reprojection_error,
            processing_time=(time.time() - start_time) * 1000
        )

    def is_tracking_reliable(self) -> bool:
        """最近一次求解是否可靠"""
        return self.last_result is not None and self.last_result.is_reliable(self.max_reprojection_error)

    def reset(self):
        """重置为初始位姿"""
        self.previous_pose = torch.eye(4, dtype=torch.float64)
        self.last_result = None

    def _count_matches(self, matches: Optional[Dict[str, Any]]) -> int:
        if not matches:
            return 0
        points = matches.get('objectKeypoints', matches.get('points_3d'))
        return 0 if points is None else len(points)

    def _failed_result(self, num_matches: int, processing_time: float,
                       reprojection_error: float = float('inf')) -> TrackingResult:
        return TrackingResult(
            success=False,
            pose=self.previous_pose.clone(),
            R=self.previous_pose[:3, :3].clone(),
            T=self.previous_pose[:3, 3].clone(),
            tracking_method='failed',
            num_matches=num_matches,
            reprojection_error=reprojection_error,
            processing_time=processing_time
        )
