"""
EPnP求解器
由3D-2D对应关系和相机内参求解相机位姿，三种beta近似各产生一个假设，
取重投影误差最小者
"""

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Dict, Any, Optional, Tuple, List, Sequence

import cv2
import numpy as np
import torch

from .beta_estimators import BETA_ESTIMATORS, compute_l_6x10, compute_rho
from .control_points import compute_barycentric_coordinates, select_control_points
from .exceptions import (
    AllHypothesesFailedError,
    DegenerateHypothesisError,
    InsufficientCorrespondencesError,
    PnPError,
)
from .gauss_newton import refine_betas
from .linear_system import build_projection_system, compute_null_space
from .pose_reconstruction import reconstruct_pose
from ..utils.data_structures import CameraIntrinsics, CandidateSolution, Correspondence

logger = logging.getLogger('EPnP')

MIN_CORRESPONDENCES = 4

@dataclass
class PnPResult:
    """PnP求解结果数据结构"""
    success: bool                   # 求解是否成功
    R: torch.Tensor                 # 旋转矩阵 [3, 3]
    T: torch.Tensor                 # 平移向量 [3]
    reprojection_error: float      # 重投影误差
    method: str = ''               # 胜出的近似方法
    num_correspondences: int = 0   # 对应点数量
    processing_time: float = 0.0   # 处理时间(ms)
    candidates: List[CandidateSolution] = field(default_factory=list)

    def is_reliable(self, max_error: float = 5.0) -> bool:
        """判断求解结果是否可靠"""
        return self.success and self.reprojection_error <= max_error

    def pose_matrix(self) -> torch.Tensor:
        """4x4位姿矩阵"""
        pose = torch.eye(4, dtype=self.R.dtype)
        pose[:3, :3] = self.R
        pose[:3, 3] = self.T
        return pose

    def rotation_vector(self) -> np.ndarray:
        """Rodrigues旋转向量 [3]"""
        rvec, _ = cv2.Rodrigues(self.R.cpu().numpy().astype(np.float64))
        return rvec.flatten()

    @classmethod
    def failure(cls, num_correspondences: int = 0, processing_time: float = 0.0,
                candidates: Optional[List[CandidateSolution]] = None) -> 'PnPResult':
        return cls(
            success=False, R=torch.eye(3, dtype=torch.float64),
            T=torch.zeros(3, dtype=torch.float64),
            reprojection_error=float('inf'),
            method='failed',
            num_correspondences=num_correspondences,
            processing_time=processing_time,
            candidates=list(candidates or []),
        )

@dataclass
class _SharedSetup:
    """三个假设共享的中间量，仅在一次求解中存在"""
    object_points: np.ndarray
    image_points: np.ndarray
    camera_matrix: np.ndarray
    alphas: np.ndarray
    basis: np.ndarray
    L: np.ndarray
    rho: np.ndarray

class EPnPSolver:
    """EPnP位姿求解器"""

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        config = config or {}
        self.config = config
        self.parallel_hypotheses = config.get('parallel_hypotheses', False)
        self.rotation_tolerance = config.get('rotation_tolerance', 1e-6)
        self.max_reprojection_error = config.get('max_reprojection_error', 5.0)

    def solve(self, object_points, image_points, camera_matrix) -> PnPResult:
        """
        求解相机位姿

        Args:
            object_points: 参考坐标系3D点 [N, 3], N >= 4
            image_points: 对应的图像点 [N, 2]
            camera_matrix: 相机内参 [3, 3]

        Returns:
            result: 重投影误差最小的假设

        Raises:
            InsufficientCorrespondencesError: 对应点不足或格式无效
            AllHypothesesFailedError: 三个假设全部失败
        """
        start_time = time.time()

        object_points, image_points = self._validate_inputs(object_points, image_points)
        intrinsics = CameraIntrinsics.from_matrix(camera_matrix)

        try:
            setup = self._prepare(object_points, image_points, intrinsics)
        except PnPError as e:
            # 共享步骤失败时所有假设都无法继续
            candidates = [CandidateSolution(method=name, error=str(e)) for name, _ in BETA_ESTIMATORS]
            raise AllHypothesesFailedError(f"All EPnP hypotheses failed: {e}", candidates) from e

        if self.parallel_hypotheses:
            with ThreadPoolExecutor(max_workers=len(BETA_ESTIMATORS)) as executor:
                candidates = list(executor.map(
                    lambda item: self._run_hypothesis(item[0], item[1], setup), BETA_ESTIMATORS
                ))
        else:
            candidates = [self._run_hypothesis(name, estimator, setup)
                          for name, estimator in BETA_ESTIMATORS]

        best = self._select_best(candidates)
        if best is None:
            reasons = '; '.join(f"{c.method}: {c.error}" for c in candidates)
            raise AllHypothesesFailedError(f"All EPnP hypotheses failed ({reasons})", candidates)

        logger.debug(f"Selected {best.method} with reprojection error {best.reprojection_error:.6f}")

        return PnPResult(
            success=True,
            R=torch.from_numpy(best.R.copy()),
            T=torch.from_numpy(best.t.copy()),
            reprojection_error=best.reprojection_error,
            method=best.method,
            num_correspondences=len(object_points),
            processing_time=(time.time() - start_time) * 1000,
            candidates=candidates,
        )

    def solve_correspondences(self, correspondences: Sequence[Correspondence],
                              intrinsics: CameraIntrinsics) -> PnPResult:
        """基于Correspondence列表求解"""
        if len(correspondences) < MIN_CORRESPONDENCES:
            raise InsufficientCorrespondencesError(
                f"At least {MIN_CORRESPONDENCES} correspondences required, got {len(correspondences)}"
            )
        object_points = np.stack([c.object_point for c in correspondences])
        image_points = np.stack([c.image_point for c in correspondences])
        return self.solve(object_points, image_points, intrinsics.matrix)

    def solve_pnp_with_matches(self, matches: Dict[str, Any],
                               camera_matrix: np.ndarray) -> PnPResult:
        """基于特征匹配结果求解PnP，失败时返回 success=False 而不抛出异常"""
        start_time = time.time()

        object_points, image_points = self._get_3d_2d_correspondences(matches)
        if object_points is None:
            return PnPResult.failure(processing_time=(time.time() - start_time) * 1000)

        try:
            return self.solve(object_points, image_points, camera_matrix)
        except (PnPError, ValueError) as e:
            logger.error(f"EPnP solving failed: {e}")
            return PnPResult.failure(
                num_correspondences=len(object_points),
                processing_time=(time.time() - start_time) * 1000,
                candidates=getattr(e, 'candidates', None),
            )

    def _get_3d_2d_correspondences(self, matches: Dict[str, Any]) -> Tuple[Optional[np.ndarray], Optional[np.ndarray]]:
        """从匹配结果中取出3D-2D对应关系"""
        if not matches:
            return None, None

        if 'objectKeypoints' in matches:
            points_3d, points_2d = matches['objectKeypoints'], matches.get('imageKeypoints')
        else:
            points_3d, points_2d = matches.get('points_3d'), matches.get('keypoints1')

        if points_3d is None or points_2d is None:
            logger.warning(f"Matches missing 3D or 2D points: {sorted(matches.keys())}")
            return None, None

        points_3d = np.asarray(points_3d, dtype=np.float64)
        points_2d = np.asarray(points_2d, dtype=np.float64)
        if len(points_3d) < MIN_CORRESPONDENCES or len(points_3d) != len(points_2d):
            logger.warning(f"Not enough correspondences for EPnP: {len(points_3d)} 3D / {len(points_2d)} 2D")
            return None, None

        return points_3d, points_2d

    def _validate_inputs(self, object_points, image_points) -> Tuple[np.ndarray, np.ndarray]:
        """在任何矩阵运算之前检查输入"""
        object_points = np.asarray(object_points, dtype=np.float64)
        image_points = np.asarray(image_points, dtype=np.float64)

        if object_points.ndim != 2 or object_points.shape[1] != 3:
            raise InsufficientCorrespondencesError(f"Object points must be [N, 3], got {object_points.shape}")
        if image_points.ndim != 2 or image_points.shape[1] != 2:
            raise InsufficientCorrespondencesError(f"Image points must be [N, 2], got {image_points.shape}")
        if len(object_points) != len(image_points):
            raise InsufficientCorrespondencesError(
                f"Got {len(object_points)} object points but {len(image_points)} image points"
            )
        if len(object_points) < MIN_CORRESPONDENCES:
            raise InsufficientCorrespondencesError(
                f"At least {MIN_CORRESPONDENCES} correspondences required, got {len(object_points)}"
            )
        if not (np.all(np.isfinite(object_points)) and np.all(np.isfinite(image_points))):
            raise InsufficientCorrespondencesError("Correspondences contain non-finite values")

        return object_points, image_points

    def _prepare(self, object_points: np.ndarray, image_points: np.ndarray,
                 intrinsics: CameraIntrinsics) -> _SharedSetup:
        """控制点、重心坐标、投影系统和零空间"""
        control_points = select_control_points(object_points)
        alphas = compute_barycentric_coordinates(object_points, control_points)

        M = build_projection_system(alphas, image_points, intrinsics)
        basis, singular_values = compute_null_space(M)
        logger.debug(f"MtM singular values: {np.array2string(singular_values, precision=4)}")

        return _SharedSetup(
            object_points=object_points,
            image_points=image_points,
            camera_matrix=intrinsics.matrix,
            alphas=alphas,
            basis=basis,
            L=compute_l_6x10(basis),
            rho=compute_rho(control_points),
        )

    def _run_hypothesis(self, name: str, estimator, setup: _SharedSetup) -> CandidateSolution:
        """单个假设: beta估计 -> Gauss-Newton -> 位姿恢复"""
        try:
            initial_betas = estimator(setup.L, setup.rho)
            if not np.all(np.isfinite(initial_betas)):
                raise DegenerateHypothesisError(f"Non-finite initial betas: {initial_betas}")
            betas = refine_betas(setup.L, setup.rho, initial_betas)
            R, t, error = reconstruct_pose(
                betas, setup.basis, setup.alphas,
                setup.object_points, setup.image_points, setup.camera_matrix,
                rotation_tolerance=self.rotation_tolerance,
            )
        except (PnPError, np.linalg.LinAlgError) as e:
            logger.warning(f"Hypothesis {name} discarded: {e}")
            return CandidateSolution(method=name, error=str(e))

        logger.debug(f"Hypothesis {name}: betas={betas}, reprojection error={error:.6f}")
        return CandidateSolution(
            method=name, R=R, t=t, reprojection_error=error, betas=betas,
            metadata={'initial_betas': initial_betas},
        )

    @staticmethod
    def _select_best(candidates: List[CandidateSolution]) -> Optional[CandidateSolution]:
        """取重投影误差最小的假设，误差相同时保留靠前的"""
        best = None
        for candidate in candidates:
            if not candidate.succeeded:
                continue
            if best is None or candidate.reprojection_error < best.reprojection_error:
                best = candidate
        return best
