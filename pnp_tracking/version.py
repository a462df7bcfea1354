"""版本信息管理"""

__version__ = "0.3.0"
