"""
Beta初值估计
利用控制点间距离的刚体不变性，从零空间基估计4个beta系数。

控制点对的顺序为 (0,1), (0,2), (0,3), (1,2), (1,3), (2,3)，
L 矩阵的10列对应乘积项:
    [b11, b12, b22, b13, b23, b33, b14, b24, b34, b44]
"""

import numpy as np

CONTROL_POINT_PAIRS = ((0, 1), (0, 2), (0, 3), (1, 2), (1, 3), (2, 3))

# 各近似方法使用的L列
APPROX_1_COLUMNS = [0, 1, 3, 6]        # b11, b12, b13, b14
APPROX_2_COLUMNS = [0, 1, 2]           # b11, b12, b22
APPROX_3_COLUMNS = [0, 1, 2, 3, 4]     # b11, b12, b22, b13, b23

def compute_rho(control_points: np.ndarray) -> np.ndarray:
    """参考坐标系下控制点两两之间的平方距离 [6]"""
    return np.array([
        np.sum((control_points[a] - control_points[b]) ** 2)
        for a, b in CONTROL_POINT_PAIRS
    ])

def compute_l_6x10(basis: np.ndarray) -> np.ndarray:
    """
    构建 6x10 系数矩阵L

    Args:
        basis: 零空间基 [4, 12]

    Returns:
        L: 系数矩阵 [6, 10]
    """
    vectors = basis.reshape(4, 4, 3)
    # dv[i, j]: 第i个基向量中第j对控制点的差
    dv = np.stack([
        np.stack([v[a] - v[b] for a, b in CONTROL_POINT_PAIRS])
        for v in vectors
    ])

    def dot(i, j):
        return np.sum(dv[i] * dv[j], axis=1)

    L = np.empty((6, 10))
    L[:, 0] = dot(0, 0)
    L[:, 1] = 2.0 * dot(0, 1)
    L[:, 2] = dot(1, 1)
    L[:, 3] = 2.0 * dot(0, 2)
    L[:, 4] = 2.0 * dot(1, 2)
    L[:, 5] = dot(2, 2)
    L[:, 6] = 2.0 * dot(0, 3)
    L[:, 7] = 2.0 * dot(1, 3)
    L[:, 8] = 2.0 * dot(2, 3)
    L[:, 9] = dot(3, 3)
    return L

def _solve_reduced(L: np.ndarray, rho: np.ndarray, columns) -> np.ndarray:
    """在L的列子集上求最小二乘解"""
    solution, _, _, _ = np.linalg.lstsq(L[:, columns], rho, rcond=None)
    return solution

def estimate_betas_approx_1(L: np.ndarray, rho: np.ndarray) -> np.ndarray:
    """
    近似1: 假设 b11 为主导项

    求解 [b11, b12, b13, b14]，开方得到 b1，其余系数由交叉项除以 b1 得到。
    """
    b4 = _solve_reduced(L, rho, APPROX_1_COLUMNS)
    betas = np.zeros(4)

    with np.errstate(divide='ignore', invalid='ignore'):
        if b4[0] < 0:
            betas[0] = np.sqrt(-b4[0])
            betas[1:] = -b4[1:] / betas[0]
        else:
            betas[0] = np.sqrt(b4[0])
            betas[1:] = b4[1:] / betas[0]

    return betas

def estimate_betas_approx_2(L: np.ndarray, rho: np.ndarray) -> np.ndarray:
    """
    近似2: 只使用前两个基向量

    求解 [b11, b12, b22]，b3 = b4 = 0。
    """
    b3 = _solve_reduced(L, rho, APPROX_2_COLUMNS)
    betas = np.zeros(4)

    if b3[0] < 0:
        betas[0] = np.sqrt(-b3[0])
        betas[1] = np.sqrt(-b3[2]) if b3[2] < 0 else 0.0
    else:
        betas[0] = np.sqrt(b3[0])
        betas[1] = np.sqrt(b3[2]) if b3[2] > 0 else 0.0

    if b3[1] < 0:
        betas[0] = -betas[0]

    return betas

def estimate_betas_approx_3(L: np.ndarray, rho: np.ndarray) -> np.ndarray:
    """
    近似3: 使用前三个基向量

    求解 [b11, b12, b22, b13, b23]，b1、b2 同近似2，b3 = b13 / b1，b4 = 0。
    """
    b5 = _solve_reduced(L, rho, APPROX_3_COLUMNS)
    betas = np.zeros(4)

    if b5[0] < 0:
        betas[0] = np.sqrt(-b5[0])
        betas[1] = np.sqrt(-b5[2]) if b5[2] < 0 else 0.0
    else:
        betas[0] = np.sqrt(b5[0])
        betas[1] = np.sqrt(b5[2]) if b5[2] > 0 else 0.0

    if b5[1] < 0:
        betas[0] = -betas[0]

    with np.errstate(divide='ignore', invalid='ignore'):
        betas[2] = b5[3] / betas[0]

    return betas

BETA_ESTIMATORS = (
    ('approx_1', estimate_betas_approx_1),
    ('approx_2', estimate_betas_approx_2),
    ('approx_3', estimate_betas_approx_3),
)
