"""
pytest配置文件
定义测试夹具和全局配置
"""

import pytest
import sys
import cv2
import numpy as np
from pathlib import Path

# 添加项目路径
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

def project(object_points: np.ndarray, R: np.ndarray, t: np.ndarray, K: np.ndarray) -> np.ndarray:
    """无畸变针孔投影"""
    camera_points = object_points @ R.T + t
    projected = camera_points @ K.T
    return projected[:, :2] / projected[:, 2:3]

def make_scene(num_points: int = 10, seed: int = 0, rvec=(0.2, -0.3, 0.1),
               tvec=(0.1, -0.2, 6.0), K: np.ndarray = None):
    """生成随机无噪声场景，返回 (object_points, image_points, R, t, K)"""
    if K is None:
        K = np.array([[800.0, 0, 320.0],
                      [0, 800.0, 240.0],
                      [0, 0, 1.0]])
    rng = np.random.default_rng(seed)
    object_points = rng.uniform(-1.0, 1.0, (num_points, 3))
    R, _ = cv2.Rodrigues(np.array(rvec, dtype=np.float64).reshape(3, 1))
    t = np.array(tvec, dtype=np.float64)
    image_points = project(object_points, R, t, K)
    return object_points, image_points, R, t, K

@pytest.fixture
def camera_matrix():
    """相机内参fixture"""
    return np.array([[800.0, 0, 320.0],
                     [0, 800.0, 240.0],
                     [0, 0, 1.0]])

@pytest.fixture
def cube_scene(camera_matrix):
    """单位立方体4个不共面顶点，R = I, t = (0, 0, 500)"""
    object_points = np.array([
        [0.0, 0.0, 0.0],
        [1.0, 0.0, 0.0],
        [0.0, 1.0, 0.0],
        [0.0, 0.0, 1.0],
    ])
    R = np.eye(3)
    t = np.array([0.0, 0.0, 500.0])
    image_points = project(object_points, R, t, camera_matrix)
    return object_points, image_points, R, t, camera_matrix

@pytest.fixture
def random_scene():
    """10个点的随机无噪声场景"""
    return make_scene(num_points=10, seed=7)

@pytest.fixture
def scene_factory():
    """场景生成函数fixture"""
    return make_scene

@pytest.fixture
def projector():
    """投影函数fixture"""
    return project

@pytest.fixture
def sample_config():
    """样例配置fixture"""
    return {
        'EPnPSolver': {
            'parallel_hypotheses': False,
            'rotation_tolerance': 1e-6,
            'max_reprojection_error': 5.0
        },
        'KeypointTracker': {
            'camera_matrix': [[800.0, 0.0, 320.0],
                              [0.0, 800.0, 240.0],
                              [0.0, 0.0, 1.0]],
            'min_matches': 4
        }
    }
