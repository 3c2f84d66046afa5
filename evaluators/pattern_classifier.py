"""疲劳类型归因模块，对因子贡献做简单启发式判断"""

from typing import Iterable

from models.data_models import FactorCategory, FactorContribution, PatternResult

# 经验阈值，可按实际数据调整
DOMINANCE_RATIO = 2.0
MIXED_MIN_SUM = 0.1
MOTOR_MIN_CONTRIBUTION = 0.05
MOTOR_KEYWORDS = ("Typing", "Click")


def detect_exhaustion_pattern(factors: Iterable[FactorContribution]) -> PatternResult:
    """
    根据生理与行为贡献和判断主导疲劳类型。

    - 生理和 > 2 * 行为和: visual
    - 行为和 > 2 * 生理和: 打字/点击因子贡献 > 0.05 时为 physical，否则 cognitive
    - 两者均 > 0.1: mixed
    - 其余: none
    """
    factors = list(factors)
    physio_sum = sum(f.weighted_contribution for f in factors if f.category is FactorCategory.PHYSIOLOGICAL)
    behavior_sum = sum(f.weighted_contribution for f in factors if f.category is FactorCategory.BEHAVIORAL)

    if physio_sum > behavior_sum * DOMINANCE_RATIO:
        return PatternResult(
            pattern="visual",
            confidence=0.85,
            causes=["Eye strain", "Screen brightness", "Prolonged focus"],
        )

    if behavior_sum > physio_sum * DOMINANCE_RATIO:
        has_motor = any(
            keyword in f.name and f.weighted_contribution > MOTOR_MIN_CONTRIBUTION
            for f in factors
            for keyword in MOTOR_KEYWORDS
        )
        if has_motor:
            return PatternResult(
                pattern="physical",
                confidence=0.75,
                causes=["Repetitive strain", "Hand fatigue", "Motor control decline"],
            )
        return PatternResult(
            pattern="cognitive",
            confidence=0.80,
            causes=["Mental overload", "Context switching", "Decision fatigue"],
        )

    if physio_sum > MIXED_MIN_SUM and behavior_sum > MIXED_MIN_SUM:
        return PatternResult(
            pattern="mixed",
            confidence=0.70,
            causes=["Multiple exhaustion factors", "Prolonged work", "Insufficient breaks"],
        )

    return PatternResult(pattern="none", confidence=1.0, causes=[])
