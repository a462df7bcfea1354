"""
几何工具函数
包含3D几何计算相关的工具函数
"""

import cv2
import numpy as np

def transform_points(points: np.ndarray, R: np.ndarray, T: np.ndarray) -> np.ndarray:
    """
    使用旋转和平移变换3D点

    Args:
        points: 输入3D点 [N, 3]
        R: 旋转矩阵 [3, 3]
        T: 平移向量 [3]

    Returns:
        transformed_points: 变换后的3D点 [N, 3]
    """
    return points @ np.asarray(R).T + np.asarray(T).reshape(1, 3)

def project_points(points_3d: np.ndarray, R: np.ndarray, T: np.ndarray,
                   intrinsics: np.ndarray) -> np.ndarray:
    """
    将参考坐标系3D点经位姿(R, T)投影到图像平面（无畸变）

    Args:
        points_3d: 3D点 [N, 3]
        R: 旋转矩阵 [3, 3]
        T: 平移向量 [3]
        intrinsics: 相机内参 [3, 3]

    Returns:
        points_2d: 投影的2D点 [N, 2]
    """
    rvec, _ = cv2.Rodrigues(np.asarray(R, dtype=np.float64))
    projected, _ = cv2.projectPoints(
        np.asarray(points_3d, dtype=np.float64).reshape(-1, 1, 3),
        rvec,
        np.asarray(T, dtype=np.float64).reshape(3, 1),
        np.asarray(intrinsics, dtype=np.float64),
        np.zeros(4)
    )
    return projected.reshape(-1, 2)

def compute_reprojection_error(points_3d: np.ndarray, points_2d: np.ndarray,
                               R: np.ndarray, T: np.ndarray, intrinsics: np.ndarray) -> float:
    """计算平均重投影误差（像素），有点不在相机前方时为inf"""
    depths = transform_points(np.asarray(points_3d, dtype=np.float64), R, T)[:, 2]
    if np.any(depths <= 0):
        return float('inf')

    projected = project_points(points_3d, R, T, intrinsics)
    errors = np.linalg.norm(np.asarray(points_2d, dtype=np.float64) - projected, axis=1)
    return float(np.mean(errors))

def is_proper_rotation(R: np.ndarray, tolerance: float = 1e-6) -> bool:
    """判断是否为行列式+1的正交矩阵"""
    R = np.asarray(R, dtype=np.float64)
    if R.shape != (3, 3) or not np.all(np.isfinite(R)):
        return False
    orthonormal = np.allclose(R.T @ R, np.eye(3), atol=tolerance)
    return orthonormal and abs(np.linalg.det(R) - 1.0) < tolerance

def rotation_angle_between(R1: np.ndarray, R2: np.ndarray) -> float:
    """两个旋转之间的夹角（弧度）"""
    R_rel = np.asarray(R1).T @ np.asarray(R2)
    cos_angle = np.clip((np.trace(R_rel) - 1.0) / 2.0, -1.0, 1.0)
    return float(np.arccos(cos_angle))
