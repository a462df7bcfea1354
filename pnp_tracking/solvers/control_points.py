"""
控制点选择与重心坐标
将参考点表示为4个控制点的仿射组合
"""

import numpy as np

from .exceptions import SingularBasisError

# 控制点基的相对奇异值阈值，低于该值的轴视为退化
BASIS_RANK_TOLERANCE = 1e-6

def select_control_points(object_points: np.ndarray) -> np.ndarray:
    """
    选择4个控制点

    控制点0为参考点的质心，控制点1-3为质心沿去中心化点集主方向
    偏移 sqrt(特征值 / n) 的点。

    Args:
        object_points: 参考坐标系3D点 [N, 3]

    Returns:
        control_points: 控制点 [4, 3]
    """
    n = object_points.shape[0]
    centroid = object_points.mean(axis=0)

    centered = object_points - centroid
    # 散布矩阵为对称半正定矩阵，U的列即为主方向
    U, D, _ = np.linalg.svd(centered.T @ centered)

    control_points = np.empty((4, 3))
    control_points[0] = centroid
    for i in range(1, 4):
        k = np.sqrt(D[i - 1] / n)
        control_points[i] = centroid + k * U[:, i - 1]

    return control_points

def compute_barycentric_coordinates(object_points: np.ndarray,
                                    control_points: np.ndarray) -> np.ndarray:
    """
    计算每个参考点关于控制点的重心坐标

    求解 [c1-c0 | c2-c0 | c3-c0] x = p - c0, a0 = 1 - a1 - a2 - a3。
    参考点共面时基的秩为2，缺失轴上的权重取0。

    Args:
        object_points: 参考坐标系3D点 [N, 3]
        control_points: 控制点 [4, 3]

    Returns:
        alphas: 重心坐标 [N, 4]，每行之和为1

    Raises:
        SingularBasisError: 控制点基的秩小于2（共线或重合）
    """
    CC = (control_points[1:] - control_points[0]).T
    offsets = (object_points - control_points[0]).T

    singular_values = np.linalg.svd(CC, compute_uv=False)
    if singular_values[0] == 0:
        raise SingularBasisError("Control points coincide, barycentric basis is empty")

    rank = int(np.sum(singular_values > BASIS_RANK_TOLERANCE * singular_values[0]))
    if rank < 2:
        raise SingularBasisError(
            f"Control point basis has rank {rank}, object points are collinear"
        )

    if rank == 3:
        weights = np.linalg.solve(CC, offsets)
    else:
        # 平面场景
        weights = np.linalg.pinv(CC, rcond=BASIS_RANK_TOLERANCE) @ offsets

    alphas = np.empty((object_points.shape[0], 4))
    alphas[:, 1:] = weights.T
    alphas[:, 0] = 1.0 - alphas[:, 1:].sum(axis=1)

    return alphas
