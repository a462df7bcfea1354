#!/usr/bin/env python3
"""
位姿恢复单元测试
"""

import cv2
import pytest
import numpy as np
from unittest.mock import patch
from pnp_tracking.solvers.control_points import (
    select_control_points,
    compute_barycentric_coordinates,
)
from pnp_tracking.solvers.linear_system import build_projection_system, compute_null_space
from pnp_tracking.solvers.pose_reconstruction import (
    estimate_rigid_transform,
    reconstruct_pose,
)
from pnp_tracking.solvers.exceptions import DegenerateHypothesisError
from pnp_tracking.solvers.geometry_utils import is_proper_rotation
from pnp_tracking.utils.data_structures import CameraIntrinsics

class TestRigidTransform:
    """刚体对齐测试类"""

    def test_recovers_known_transform(self):
        rng = np.random.default_rng(0)
        points = rng.normal(size=(10, 3))
        R_true, _ = cv2.Rodrigues(np.array([[0.4], [-0.1], [0.7]]))
        t_true = np.array([1.0, 2.0, 3.0])

        R, t = estimate_rigid_transform(points, points @ R_true.T + t_true)

        np.testing.assert_allclose(R, R_true, atol=1e-10)
        np.testing.assert_allclose(t, t_true, atol=1e-10)

    def test_reflected_input_gives_proper_rotation(self):
        """镜像点集仍得到行列式为+1的旋转"""
        rng = np.random.default_rng(1)
        points = rng.normal(size=(8, 3))
        mirrored = points * np.array([1.0, 1.0, -1.0])

        R, t = estimate_rigid_transform(points, mirrored)

        assert is_proper_rotation(R)
        assert np.all(np.isfinite(t))

class TestReconstructPose:
    """由beta恢复位姿测试类"""

    def setup_scene(self, scene):
        object_points, image_points, R, t, K = scene
        control_points = select_control_points(object_points)
        alphas = compute_barycentric_coordinates(object_points, control_points)
        M = build_projection_system(alphas, image_points, CameraIntrinsics.from_matrix(K))
        basis, _ = compute_null_space(M)

        true_vector = (control_points @ R.T + t).reshape(-1)
        betas = np.array([basis[0] @ true_vector, 0.0, 0.0, 0.0])
        return object_points, image_points, K, alphas, basis, betas

    def test_exact_betas_recover_pose(self, random_scene):
        object_points, image_points, K, alphas, basis, betas = self.setup_scene(random_scene)
        R_true, t_true = random_scene[2], random_scene[3]

        R, t, error = reconstruct_pose(betas, basis, alphas, object_points, image_points, K)

        np.testing.assert_allclose(R, R_true, atol=1e-5)
        np.testing.assert_allclose(t, t_true, atol=1e-4)
        assert error < 1e-3

    def test_negated_betas_flip_to_front_of_camera(self, random_scene):
        """深度为负时整体取反"""
        object_points, image_points, K, alphas, basis, betas = self.setup_scene(random_scene)

        R_pos, t_pos, _ = reconstruct_pose(betas, basis, alphas, object_points, image_points, K)
        R_neg, t_neg, _ = reconstruct_pose(-betas, basis, alphas, object_points, image_points, K)

        np.testing.assert_allclose(R_neg, R_pos, atol=1e-12)
        np.testing.assert_allclose(t_neg, t_pos, atol=1e-10)
        assert t_neg[2] > 0

    def test_non_finite_betas_raise(self, random_scene):
        object_points, image_points, K, alphas, basis, _ = self.setup_scene(random_scene)

        with pytest.raises(DegenerateHypothesisError):
            reconstruct_pose(np.array([np.nan, 0.0, 0.0, 0.0]), basis, alphas,
                             object_points, image_points, K)

    def test_points_behind_camera_raise(self, random_scene):
        """重投影误差为inf时丢弃该假设"""
        object_points, image_points, K, alphas, basis, betas = self.setup_scene(random_scene)

        with patch('pnp_tracking.solvers.pose_reconstruction.compute_reprojection_error',
                   return_value=float('inf')):
            with pytest.raises(DegenerateHypothesisError):
                reconstruct_pose(betas, basis, alphas, object_points, image_points, K)
