"""
PnP求解异常定义
单个假设内部的异常只丢弃该假设，全部失败时才向调用方抛出
"""


class PnPError(Exception):
    """PnP求解异常基类"""


class InsufficientCorrespondencesError(PnPError):
    """对应点数量不足或输入格式无效"""


class SingularBasisError(PnPError):
    """控制点张成的基退化（例如所有点共线）"""


class NumericallySingularSystemError(PnPError):
    """最小二乘求解时主元列全为零"""


class DegenerateHypothesisError(PnPError):
    """假设产生了非有限值或无效旋转"""


class AllHypothesesFailedError(PnPError):
    """三个假设全部失败"""

    def __init__(self, message: str, candidates=None):
        super().__init__(message)
        self.candidates = list(candidates or [])
