"""
疲劳趋势预测模块

对最近的综合得分做最小二乘线性回归，外推未来得分并估算降到阈值的时间。
假设历史得分约每分钟采样一次，时间相关输出均以样本间隔为单位。
"""

import math
from typing import Sequence

import numpy as np

from evaluators.scoring import clamp, round_half_up
from models.data_models import TrajectoryPrediction

MIN_SAMPLES = 5
MAX_SAMPLES = 30
HORIZON = 30
EXHAUSTION_THRESHOLD = 40

# 斜率分界（每样本得分变化）
IMPROVING_SLOPE = 0.5
STABLE_SLOPE = -0.5
DECLINING_SLOPE = -2.0

IMMINENT_MINUTES = 15
SOON_MINUTES = 30


def classify_trend(slope: float) -> str:
    """按回归斜率划分趋势"""
    if slope > IMPROVING_SLOPE:
        return "improving"
    if slope > STABLE_SLOPE:
        return "stable"
    if slope > DECLINING_SLOPE:
        return "declining"
    return "critical"


def _recommend(time_to_exhaustion: float, trend: str) -> str:
    if time_to_exhaustion < IMMINENT_MINUTES:
        return "Take a break NOW - exhaustion imminent within 15 minutes"
    if time_to_exhaustion < SOON_MINUTES:
        return "Schedule a break within 30 minutes to prevent exhaustion"
    if trend == "declining":
        return "Declining trend detected - plan breaks proactively"
    if trend == "critical":
        return "Critical decline - immediate intervention recommended"
    if trend == "improving":
        return "Recovery trend detected - maintain current pace"
    return "Stable focus levels - you're doing well"


def predict_fatigue_trajectory(history: Sequence[float]) -> TrajectoryPrediction:
    """
    预测疲劳趋势。

    Args:
        history: 按时间顺序排列的历史综合得分

    Returns:
        TrajectoryPrediction；样本不足 5 个时返回最后得分（无数据时 100）、
        无穷大剩余时间和 stable 趋势
    """
    if len(history) < MIN_SAMPLES:
        last = history[-1] if len(history) else 100
        return TrajectoryPrediction(
            predicted_score=last,
            time_to_exhaustion_minutes=math.inf,
            trend="stable",
            recommendation="Not enough data for prediction yet",
        )

    recent = np.asarray(history[-MAX_SAMPLES:], dtype=np.float64)
    n = len(recent)
    x = np.arange(n, dtype=np.float64)

    sum_x = x.sum()
    sum_y = recent.sum()
    sum_xy = (x * recent).sum()
    sum_x2 = (x * x).sum()

    slope = (n * sum_xy - sum_x * sum_y) / (n * sum_x2 - sum_x * sum_x)
    intercept = (sum_y - slope * sum_x) / n

    predicted = clamp(slope * (n + HORIZON) + intercept)

    current = float(recent[-1])
    time_to_exhaustion = math.inf
    if slope < 0 and current > EXHAUSTION_THRESHOLD:
        time_to_exhaustion = abs((EXHAUSTION_THRESHOLD - current) / slope)

    trend = classify_trend(slope)

    return TrajectoryPrediction(
        predicted_score=round_half_up(predicted),
        time_to_exhaustion_minutes=(
            time_to_exhaustion if math.isinf(time_to_exhaustion) else round_half_up(time_to_exhaustion)
        ),
        trend=trend,
        recommendation=_recommend(time_to_exhaustion, trend),
        slope=float(slope),
    )
