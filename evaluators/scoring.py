"""评分通用工具"""

import math


def clamp(value: float, low: float = 0.0, high: float = 100.0) -> float:
    """将数值限制在 [low, high]"""
    return max(low, min(high, value))


def round_half_up(value: float) -> int:
    """四舍五入到整数（.5 向上取整），与显示端保持一致"""
    return int(math.floor(value + 0.5))
