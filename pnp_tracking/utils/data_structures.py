"""
数据结构定义
定义位姿求解中使用的通用数据结构
"""

import numpy as np
from dataclasses import dataclass, field
from typing import Optional, Dict, Any

@dataclass(frozen=True)
class Correspondence:
    """3D参考点与其2D图像观测的对应关系"""
    object_point: np.ndarray        # 参考坐标系3D点 [3]
    image_point: np.ndarray         # 图像像素坐标 [2]

    def __post_init__(self):
        object.__setattr__(self, 'object_point', np.asarray(self.object_point, dtype=np.float64).reshape(3))
        object.__setattr__(self, 'image_point', np.asarray(self.image_point, dtype=np.float64).reshape(2))

@dataclass(frozen=True)
class CameraIntrinsics:
    """相机内参 (fu, fv, uc, vc)"""
    fu: float
    fv: float
    uc: float
    vc: float

    @classmethod
    def from_matrix(cls, camera_matrix) -> 'CameraIntrinsics':
        """从3x3内参矩阵构建"""
        K = np.asarray(camera_matrix, dtype=np.float64)
        if K.size == 9:
            K = K.reshape(3, 3)
        if K.shape != (3, 3):
            raise ValueError(f"Camera matrix must be 3x3, got shape {K.shape}")
        return cls(fu=float(K[0, 0]), fv=float(K[1, 1]), uc=float(K[0, 2]), vc=float(K[1, 2]))

    @property
    def matrix(self) -> np.ndarray:
        """内参矩阵 [3, 3]"""
        return np.array([[self.fu, 0.0, self.uc],
                         [0.0, self.fv, self.vc],
                         [0.0, 0.0, 1.0]])

@dataclass
class CandidateSolution:
    """单个beta近似得到的候选位姿"""
    method: str                                 # 'approx_1' | 'approx_2' | 'approx_3'
    R: Optional[np.ndarray] = None              # 旋转矩阵 [3, 3]
    t: Optional[np.ndarray] = None              # 平移向量 [3]
    reprojection_error: float = float('inf')    # 平均重投影误差(像素)
    betas: Optional[np.ndarray] = None          # 优化后的beta [4]
    error: Optional[str] = None                 # 失败原因
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def succeeded(self) -> bool:
        return self.error is None and self.R is not None
