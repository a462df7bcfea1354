"""
PnP Tracking Package Setup
"""

from setuptools import setup, find_packages
from pathlib import Path

# 读取README文件
this_directory = Path(__file__).parent
long_description = (this_directory / "README.md").read_text() if (this_directory / "README.md").exists() else ""

# 读取版本信息
version = "0.3.0"

setup(
    name="pnp-tracking",
    version=version,
    author="PnP Tracking Team",
    author_email="team@pnp-tracking.dev",
    description="EPnP camera pose estimation from 3D-2D keypoint correspondences",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(include=["pnp_tracking", "pnp_tracking.*"]),
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "Intended Audience :: Science/Research",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Topic :: Scientific/Engineering :: Image Recognition",
    ],
    python_requires=">=3.8",
    install_requires=[
        "numpy>=1.19.0",
        "opencv-python>=4.5.0",
        "torch>=1.8.0",
        "PyYAML>=5.4",
    ],
    extras_require={
        "dev": [
            "pytest>=6.0",
            "pytest-cov>=2.10",
            "black>=21.0",
            "flake8>=3.8",
            "mypy>=0.8",
        ],
    },
    include_package_data=True,
    zip_safe=False,
)
