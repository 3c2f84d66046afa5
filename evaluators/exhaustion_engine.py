"""
综合疲劳指数融合模块

行为指标（40%）与生理指标（60%）按固定权重融合为 0-100 的健康分，
分数越高状态越好。输入为稀疏映射，缺失的因子不参与计算。
"""

import logging
from typing import Dict, List, Mapping, Optional, Union

from evaluators.scoring import clamp, round_half_up
from models.data_models import (
    ExhaustionResult,
    Factor,
    FactorCategory,
    FactorContribution,
)

logger = logging.getLogger(__name__)

BEHAVIORAL_SHARE = 0.4
PHYSIOLOGICAL_SHARE = 0.6
INTERVENTION_THRESHOLD = 40

# 下限（含）从高到低
LEVEL_THRESHOLDS = (
    (80, "optimal"),
    (60, "mild"),
    (40, "moderate"),
    (20, "severe"),
)

_RECOMMENDATIONS = {
    "optimal": "You're doing great! Maintain your current work rhythm.",
    "mild": "Light fatigue detected primarily from {factor}. Consider a short 2-minute break soon.",
    "moderate": "Moderate fatigue detected. {factor} is affecting your performance. Take a 5-minute break now.",
    "severe": "Significant exhaustion from {factor} and other factors. A 10-15 minute break is strongly recommended.",
    "critical": "Critical exhaustion detected! Stop work immediately and take a proper 20+ minute recovery break.",
}

MetricsMap = Mapping[Union[Factor, str], Optional[float]]


def classify_level(total_score: float) -> str:
    """按总分划分疲劳等级"""
    for lower, level in LEVEL_THRESHOLDS:
        if total_score >= lower:
            return level
    return "critical"


def _resolve_factor(key) -> Optional[Factor]:
    try:
        return Factor(key)
    except ValueError:
        return None


def _collect(
    metrics: Optional[MetricsMap],
    category: FactorCategory,
    factors: List[FactorContribution],
) -> float:
    """累加某一类别的加权惩罚，并记录每个因子的贡献"""
    # 同一因子以枚举和字符串两种键出现时只计一次，后出现的值为准
    resolved: Dict[Factor, float] = {}
    for key, value in (metrics or {}).items():
        if value is None:
            continue
        factor = _resolve_factor(key)
        if factor is None or factor.category is not category:
            logger.debug("忽略未知或类别不符的因子: %r", key)
            continue
        resolved[factor] = value

    total = 0.0
    for factor, value in resolved.items():
        contribution = value * factor.weight
        total += contribution
        factors.append(FactorContribution(
            factor=factor,
            name=factor.label,
            raw_value=value,
            weighted_contribution=contribution,
            weight_percent=factor.weight * 100,
            category=category,
        ))
    return total


def _recommend(level: str, factors: List[FactorContribution]) -> str:
    top_name = factors[0].name if factors else "general workload"
    return _RECOMMENDATIONS[level].format(factor=top_name)


def calculate_exhaustion_index(
    behavioral: Optional[MetricsMap] = None,
    physiological: Optional[MetricsMap] = None,
) -> ExhaustionResult:
    """
    计算综合疲劳指数。

    每个因子贡献 = 值 * 权重；类别得分 = clamp(100 - 惩罚和 * 100)，
    总分 = 行为得分 * 0.4 + 生理得分 * 0.6。

    Args:
        behavioral: 行为因子映射，键为 Factor 或其字符串值
        physiological: 生理因子映射

    Returns:
        ExhaustionResult，factors 按贡献降序（相同贡献保持输入顺序）
    """
    factors: List[FactorContribution] = []
    behavioral_total = _collect(behavioral, FactorCategory.BEHAVIORAL, factors)
    physiological_total = _collect(physiological, FactorCategory.PHYSIOLOGICAL, factors)

    behavioral_score = clamp(100 - behavioral_total * 100)
    physiological_score = clamp(100 - physiological_total * 100)
    total_score = behavioral_score * BEHAVIORAL_SHARE + physiological_score * PHYSIOLOGICAL_SHARE

    level = classify_level(total_score)
    factors.sort(key=lambda f: f.weighted_contribution, reverse=True)

    return ExhaustionResult(
        total_score=round_half_up(total_score),
        level=level,
        behavioral_score=round_half_up(behavioral_score),
        physiological_score=round_half_up(physiological_score),
        factors=tuple(factors),
        recommendation=_recommend(level, factors),
        should_intervene=total_score < INTERVENTION_THRESHOLD,
    )


def parse_metrics(data: Optional[Dict]) -> Dict[Factor, float]:
    """从 JSON 对象解析因子映射，忽略未知键和非数值"""
    parsed: Dict[Factor, float] = {}
    if not isinstance(data, dict):
        return parsed
    for key, value in data.items():
        factor = _resolve_factor(key)
        if factor is None or isinstance(value, bool) or not isinstance(value, (int, float)):
            continue
        parsed[factor] = float(value)
    return parsed
