"""
Gauss-Newton优化
固定迭代次数修正beta，线性子问题用Householder QR求解
"""

import numpy as np

from .exceptions import NumericallySingularSystemError

# 固定迭代次数，不做收敛判断
GAUSS_NEWTON_ITERATIONS = 5

def qr_solve(A: np.ndarray, b: np.ndarray) -> np.ndarray:
    """
    用Householder QR求解超定系统 A x = b 的最小二乘解

    每个主元列先按其最大绝对值缩放，再构造反射变换作用于后续列和右端项，
    最后对上三角系统回代。

    Args:
        A: 系数矩阵 [m, n], m >= n
        b: 右端项 [m]

    Returns:
        x: 解向量 [n]

    Raises:
        NumericallySingularSystemError: 某一主元列全为零
    """
    A = np.array(A, dtype=np.float64)
    b = np.array(b, dtype=np.float64).reshape(-1)
    nr, nc = A.shape

    A1 = np.zeros(nc)
    A2 = np.zeros(nc)

    for k in range(nc):
        eta = np.max(np.abs(A[k:, k]))
        if eta == 0:
            raise NumericallySingularSystemError(
                f"Pivot column {k} is zero, least-squares system is singular"
            )

        A[k:, k] /= eta
        sigma = np.sqrt(np.sum(A[k:, k] ** 2))
        if A[k, k] < 0:
            sigma = -sigma
        A[k, k] += sigma
        A1[k] = sigma * A[k, k]
        A2[k] = -eta * sigma

        if k + 1 < nc:
            tau = (A[k:, k] @ A[k:, k + 1:]) / A1[k]
            A[k:, k + 1:] -= np.outer(A[k:, k], tau)

    # b <- Q^T b
    for j in range(nc):
        tau = (A[j:, j] @ b[j:]) / A1[j]
        b[j:] -= tau * A[j:, j]

    # x <- R^-1 b
    x = np.zeros(nc)
    x[nc - 1] = b[nc - 1] / A2[nc - 1]
    for i in range(nc - 2, -1, -1):
        x[i] = (b[i] - A[i, i + 1:] @ x[i + 1:]) / A2[i]

    return x

def beta_products(betas: np.ndarray) -> np.ndarray:
    """beta两两乘积，顺序与L的列一致 [10]"""
    b0, b1, b2, b3 = betas
    return np.array([
        b0 * b0, b0 * b1, b1 * b1, b0 * b2, b1 * b2,
        b2 * b2, b0 * b3, b1 * b3, b2 * b3, b3 * b3,
    ])

def compute_gauss_newton_system(L: np.ndarray, rho: np.ndarray, betas: np.ndarray):
    """
    计算当前beta处的雅可比矩阵A [6, 4]和残差B [6]
    """
    b0, b1, b2, b3 = betas

    A = np.empty((6, 4))
    A[:, 0] = 2 * L[:, 0] * b0 + L[:, 1] * b1 + L[:, 3] * b2 + L[:, 6] * b3
    A[:, 1] = L[:, 1] * b0 + 2 * L[:, 2] * b1 + L[:, 4] * b2 + L[:, 7] * b3
    A[:, 2] = L[:, 3] * b0 + L[:, 4] * b1 + 2 * L[:, 5] * b2 + L[:, 8] * b3
    A[:, 3] = L[:, 6] * b0 + L[:, 7] * b1 + L[:, 8] * b2 + 2 * L[:, 9] * b3

    B = rho - L @ beta_products(betas)
    return A, B

def refine_betas(L: np.ndarray, rho: np.ndarray, betas: np.ndarray) -> np.ndarray:
    """
    Gauss-Newton修正beta

    Args:
        L: 系数矩阵 [6, 10]
        rho: 控制点平方距离 [6]
        betas: 初始beta [4]

    Returns:
        betas: 修正后的beta [4]
    """
    current = np.array(betas, dtype=np.float64)

    for _ in range(GAUSS_NEWTON_ITERATIONS):
        A, B = compute_gauss_newton_system(L, rho, current)
        current += qr_solve(A, B)

    return current
