#!/usr/bin/env python3
"""
测试运行脚本
按测试套件运行pytest，并可检查仓库自带的配置文件
"""

import sys
import subprocess
from pathlib import Path
import argparse

PROJECT_ROOT = Path(__file__).parent
CONFIG_DIR = PROJECT_ROOT / 'configs'

# 套件名 -> pytest参数
TEST_SUITES = {
    'unit': ['tests/unit/'],
    'integration': ['tests/integration/'],
    'solver': ['tests/unit/test_pnp_solver.py', 'tests/unit/test_gauss_newton.py',
               'tests/unit/test_beta_estimators.py', 'tests/unit/test_linear_system.py'],
    'opencv': ['tests/integration/test_full_pipeline.py', '-k', 'OpenCVConsistency'],
    'all': ['tests/'],
}

def build_command(suite='all', verbose=True, coverage=False):
    """构造pytest命令"""
    if suite not in TEST_SUITES:
        raise ValueError(f"Unknown test suite: {suite}")

    cmd = [sys.executable, '-m', 'pytest'] + TEST_SUITES[suite]
    if verbose:
        cmd.append('-v')
    if coverage:
        cmd.extend(['--cov=pnp_tracking', '--cov-report=term-missing'])
    cmd.extend(['--tb=short', '--disable-warnings'])
    return cmd

def check_configs(config_dir=CONFIG_DIR):
    """
    加载并验证配置目录下的全部YAML文件

    Returns:
        invalid: 无效配置文件名列表
    """
    from pnp_tracking.utils.config_manager import ConfigManager

    invalid = []
    for config_path in sorted(Path(config_dir).glob('*.yaml')):
        config = ConfigManager.load_with_defaults(str(config_path))
        status = 'OK' if ConfigManager.validate_config(config) else 'FAIL'
        print(f"[{status}] {config_path.name}")
        if status == 'FAIL':
            invalid.append(config_path.name)
    return invalid

def check_dependencies():
    """检查运行依赖"""
    try:
        import pytest
        import numpy
        import torch
        import cv2
        import yaml
    except ImportError as e:
        print(f"[FAIL] Missing dependency: {e}")
        print("pip install -e .[dev]")
        return False
    return True

def main(argv=None):
    parser = argparse.ArgumentParser(description='Run pnp_tracking test suites')
    parser.add_argument('--suite', choices=sorted(TEST_SUITES), default='all',
                        help='Test suite to run')
    parser.add_argument('--verbose', action='store_true', help='Verbose output')
    parser.add_argument('--coverage', action='store_true', help='Report coverage')
    parser.add_argument('--check-configs', action='store_true',
                        help='Only validate the YAML files under configs/')
    args = parser.parse_args(argv)

    if not check_dependencies():
        return False

    if args.check_configs:
        return not check_configs()

    cmd = build_command(args.suite, args.verbose, args.coverage)
    print(f"Running: {' '.join(cmd)}")
    return subprocess.run(cmd, cwd=PROJECT_ROOT).returncode == 0

if __name__ == "__main__":
    sys.exit(0 if main() else 1)
