"""
投影约束线性系统
构建 2n x 12 的齐次系统并求其近似零空间
"""

import numpy as np
from typing import Tuple

from ..utils.data_structures import CameraIntrinsics

# 零空间维数，对应4个beta系数
NULL_SPACE_DIM = 4

# M^T M 奇异值相对最大值低于此值时视为精确为零
EXACT_NULL_TOLERANCE = 1e-10

# 主元列范数的并列判定容差
PIVOT_TIE_TOLERANCE = 1e-8

def build_projection_system(alphas: np.ndarray, image_points: np.ndarray,
                            intrinsics: CameraIntrinsics) -> np.ndarray:
    """
    构建投影约束矩阵M

    每个对应点贡献两行，第k个控制点占据第3k到3k+2列:
        [a_k*fu, 0, a_k*(uc-u)]
        [0, a_k*fv, a_k*(vc-v)]

    Args:
        alphas: 重心坐标 [N, 4]
        image_points: 图像点 [N, 2]
        intrinsics: 相机内参

    Returns:
        M: 约束矩阵 [2N, 12]
    """
    n = alphas.shape[0]
    M = np.zeros((2 * n, 12))

    delta_u = intrinsics.uc - image_points[:, 0]
    delta_v = intrinsics.vc - image_points[:, 1]

    for k in range(4):
        a = alphas[:, k]
        M[0::2, 3 * k] = a * intrinsics.fu
        M[0::2, 3 * k + 2] = a * delta_u
        M[1::2, 3 * k + 1] = a * intrinsics.fv
        M[1::2, 3 * k + 2] = a * delta_v

    return M

def compute_null_space(M: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """
    求 M^T M 最小的4个奇异值对应的奇异向量

    奇异值为零的部分（如 n=4 时的整个4维零空间）由SVD任意给出，
    这里统一化为规范基，使结果不依赖于线性代数库的实现。

    Args:
        M: 约束矩阵 [2N, 12]

    Returns:
        basis: 零空间基 [4, 12]，第0行对应最小奇异值
        singular_values: M^T M 的全部奇异值 [12]（降序）
    """
    basis, singular_values = _smallest_singular_vectors(M.T @ M)

    null_dim = int(np.sum(singular_values[-NULL_SPACE_DIM:] <= EXACT_NULL_TOLERANCE * singular_values[0]))
    if null_dim > 0:
        basis[:null_dim] = canonicalize_basis(basis[:null_dim])

    return basis, singular_values

def _smallest_singular_vectors(MtM: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    U, singular_values, _ = np.linalg.svd(MtM)
    basis = np.stack([U[:, 11 - k] for k in range(NULL_SPACE_DIM)])
    return basis, singular_values

def canonicalize_basis(basis: np.ndarray) -> np.ndarray:
    """
    子空间的规范正交基，只取决于子空间本身而与输入基的选取无关

    依次选取残差范数最大的列作为主元，化为主元列为单位阵的形式，
    再按行Gram-Schmidt正交化（对角元取正）。

    Args:
        basis: 行向量张成子空间 [k, 12]

    Returns:
        canonical: 规范正交基 [k, 12]
    """
    k = basis.shape[0]
    residual = basis.copy()
    pivots = []
    for _ in range(k):
        norms = np.linalg.norm(residual, axis=0)
        norms[pivots] = -1.0
        # 范数相同时取下标最小的列
        j = int(np.flatnonzero(norms >= norms.max() * (1.0 - PIVOT_TIE_TOLERANCE))[0])
        pivots.append(j)
        q = residual[:, j] / np.linalg.norm(residual[:, j])
        residual -= np.outer(q, q @ residual)

    reduced = np.linalg.solve(basis[:, pivots], basis)
    Q, R = np.linalg.qr(reduced.T)
    Q = Q * np.sign(np.diag(R))
    return Q.T
