"""
跟踪器基类
定义跟踪器的通用接口
"""

from abc import ABC, abstractmethod
from typing import Dict, Any

class BaseTracker(ABC):
    """跟踪器基类"""
    
    def __init__(self, config: Dict[str, Any]):
        self.config = config
        
    @abstractmethod
    def track(self, matches: Dict[str, Any]):
        """
        跟踪方法
        
        Args:
            matches: 参考点与当前帧图像点的匹配结果
            
        Returns:
            result: 跟踪结果
        """
        pass
    
    @abstractmethod
    def is_tracking_reliable(self) -> bool:
        """判断跟踪是否可靠"""
        pass

    @abstractmethod
    def reset(self):
        """重置跟踪状态"""
        pass
