"""
位姿恢复
由beta和零空间基恢复相机坐标系下的点，并与参考点做刚体对齐
"""

import numpy as np
from typing import Tuple

from .exceptions import DegenerateHypothesisError
from .geometry_utils import compute_reprojection_error, is_proper_rotation

def compute_camera_control_points(betas: np.ndarray, basis: np.ndarray) -> np.ndarray:
    """相机坐标系控制点 ccs = sum_k beta_k * basis_k [4, 3]"""
    return (betas @ basis).reshape(4, 3)

def compute_camera_points(alphas: np.ndarray, camera_control_points: np.ndarray) -> np.ndarray:
    """相机坐标系参考点 pcs = alphas * ccs [N, 3]"""
    return alphas @ camera_control_points

def estimate_rigid_transform(object_points: np.ndarray,
                             camera_points: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """
    求参考点到相机点的刚体变换

    去质心后构造互协方差矩阵，SVD得到 R = U V^T。
    det(R) < 0 时取反R的第三行。

    Returns:
        R: 旋转矩阵 [3, 3]
        t: 平移向量 [3]
    """
    pc0 = camera_points.mean(axis=0)
    pw0 = object_points.mean(axis=0)

    abt = (camera_points - pc0).T @ (object_points - pw0)
    U, _, Vt = np.linalg.svd(abt)

    R = U @ Vt
    if np.linalg.det(R) < 0:
        R[2, :] = -R[2, :]

    t = pc0 - R @ pw0
    return R, t

def reconstruct_pose(betas: np.ndarray, basis: np.ndarray, alphas: np.ndarray,
                     object_points: np.ndarray, image_points: np.ndarray,
                     camera_matrix: np.ndarray,
                     rotation_tolerance: float = 1e-6) -> Tuple[np.ndarray, np.ndarray, float]:
    """
    由一组beta恢复位姿并计算重投影误差

    Args:
        betas: 修正后的beta [4]
        basis: 零空间基 [4, 12]
        alphas: 重心坐标 [N, 4]
        object_points: 参考点 [N, 3]
        image_points: 图像点 [N, 2]
        camera_matrix: 相机内参 [3, 3]
        rotation_tolerance: 旋转矩阵正交性容差

    Returns:
        R: 旋转矩阵 [3, 3]
        t: 平移向量 [3]
        reprojection_error: 平均重投影误差（像素）

    Raises:
        DegenerateHypothesisError: beta非有限或恢复的旋转无效
    """
    if not np.all(np.isfinite(betas)):
        raise DegenerateHypothesisError(f"Non-finite betas: {betas}")

    ccs = compute_camera_control_points(betas, basis)
    pcs = compute_camera_points(alphas, ccs)

    # 点必须位于相机前方
    if pcs[0, 2] < 0:
        ccs = -ccs
        pcs = -pcs

    R, t = estimate_rigid_transform(object_points, pcs)

    if not is_proper_rotation(R, rotation_tolerance) or not np.all(np.isfinite(t)):
        raise DegenerateHypothesisError("Recovered rotation is not a proper rotation")

    error = compute_reprojection_error(object_points, image_points, R, t, camera_matrix)
    if not np.isfinite(error):
        raise DegenerateHypothesisError("Points behind the camera or non-finite reprojection error")

    return R, t, error
