"""核心数据模型定义"""

import math
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple


Keypoint = Sequence[float]


class FactorCategory(str, Enum):
    """融合因子类别"""
    BEHAVIORAL = "behavioral"
    PHYSIOLOGICAL = "physiological"


class Factor(str, Enum):
    """参与疲劳指数融合的全部因子"""
    TAB_SWITCH = "tabSwitch"
    TYPING_FATIGUE = "typingFatigue"
    CLICK_ACCURACY = "clickAccuracy"
    MOUSE_ERRATIC = "mouseErratic"
    SCROLL_ANXIETY = "scrollAnxiety"
    TIME_OF_DAY = "timeOfDay"
    IDLE_TIME = "idleTime"
    EYE_FATIGUE = "eyeFatigue"
    BLINK_RATE = "blinkRate"
    EAR_SCORE = "earScore"
    STRESS_LEVEL = "stressLevel"

    @property
    def weight(self) -> float:
        return FACTOR_WEIGHTS[self]

    @property
    def label(self) -> str:
        return FACTOR_LABELS[self]

    @property
    def category(self) -> FactorCategory:
        return FACTOR_CATEGORIES[self]


# 行为类权重合计 0.40，生理类权重合计 0.60，新增因子时需同步调整
FACTOR_WEIGHTS: Dict[Factor, float] = {
    Factor.TAB_SWITCH: 0.10,
    Factor.TYPING_FATIGUE: 0.10,
    Factor.CLICK_ACCURACY: 0.07,
    Factor.MOUSE_ERRATIC: 0.05,
    Factor.SCROLL_ANXIETY: 0.03,
    Factor.TIME_OF_DAY: 0.03,
    Factor.IDLE_TIME: 0.02,
    Factor.EYE_FATIGUE: 0.25,
    Factor.BLINK_RATE: 0.15,
    Factor.EAR_SCORE: 0.10,
    Factor.STRESS_LEVEL: 0.10,
}

FACTOR_LABELS: Dict[Factor, str] = {
    Factor.TAB_SWITCH: "Tab Switching",
    Factor.TYPING_FATIGUE: "Typing Fatigue",
    Factor.CLICK_ACCURACY: "Click Accuracy",
    Factor.MOUSE_ERRATIC: "Mouse Movement",
    Factor.SCROLL_ANXIETY: "Scroll Behavior",
    Factor.TIME_OF_DAY: "Time of Day",
    Factor.IDLE_TIME: "Idle Time",
    Factor.EYE_FATIGUE: "Eye Fatigue",
    Factor.BLINK_RATE: "Blink Rate",
    Factor.EAR_SCORE: "Eye Closure",
    Factor.STRESS_LEVEL: "Stress Level",
}

FACTOR_CATEGORIES: Dict[Factor, FactorCategory] = {
    factor: FactorCategory.BEHAVIORAL for factor in (
        Factor.TAB_SWITCH,
        Factor.TYPING_FATIGUE,
        Factor.CLICK_ACCURACY,
        Factor.MOUSE_ERRATIC,
        Factor.SCROLL_ANXIETY,
        Factor.TIME_OF_DAY,
        Factor.IDLE_TIME,
    )
}
FACTOR_CATEGORIES.update({
    factor: FactorCategory.PHYSIOLOGICAL for factor in (
        Factor.EYE_FATIGUE,
        Factor.BLINK_RATE,
        Factor.EAR_SCORE,
        Factor.STRESS_LEVEL,
    )
})

for _table in (FACTOR_WEIGHTS, FACTOR_LABELS, FACTOR_CATEGORIES):
    if set(_table) != set(Factor):
        raise ValueError("因子表不完整")


@dataclass
class FaceLandmarks:
    """人脸关键点检测结果（像素坐标，按 FaceMesh 固定编号索引）"""
    left_eye: List[Tuple[float, float]]
    right_eye: List[Tuple[float, float]]
    all_landmarks: List[Tuple[float, float]]


@dataclass
class EyeResult:
    """眼睛分析结果"""
    ear: float
    is_closed: bool
    stress_level: float
    frame_count: int
    blink_attempted: bool = False


@dataclass
class BlinkRateResult:
    """眨眼频率分析结果"""
    blinks_per_min: int
    is_fatigued: bool
    score: float


@dataclass
class HeadPose:
    """单帧头部姿态几何量"""
    tilt_angle: float
    is_slumping: bool
    is_forward_head: bool


@dataclass
class PoseResult:
    """头部姿态分析结果"""
    tilt_angle: float
    is_slumping: bool
    is_forward_head: bool
    posture_score: float


@dataclass(frozen=True)
class FrameMetrics:
    """单帧生理疲劳指标快照"""
    eye_fatigue: bool = False
    stress_level: int = 0
    avg_ear: float = 0.0
    ear_score: int = 0
    blinks_per_min: int = 0
    blink_rate_score: int = 0
    blink_fatigued: bool = False
    is_slumping: bool = False
    is_forward_head: bool = False
    head_tilt_deg: int = 0
    posture_score: int = 0
    physiological_score: int = 0
    face_detected: bool = False
    raw_stress: float = 0.0

    def to_dict(self) -> dict:
        data = asdict(self)
        data["avg_ear"] = round(self.avg_ear, 3)
        data.pop("raw_stress")
        return data

    def to_physiological_metrics(self) -> Dict[Factor, float]:
        """将单帧指标映射为融合引擎的生理因子"""
        return {
            Factor.EYE_FATIGUE: self.physiological_score,
            Factor.BLINK_RATE: self.blink_rate_score,
            Factor.EAR_SCORE: self.ear_score,
            Factor.STRESS_LEVEL: min(self.raw_stress * 2, 100),
        }


@dataclass(frozen=True)
class FactorContribution:
    """单个因子对融合惩罚总量的贡献"""
    factor: Factor
    name: str
    raw_value: float
    weighted_contribution: float
    weight_percent: float
    category: FactorCategory


@dataclass(frozen=True)
class ExhaustionResult:
    """综合疲劳指数"""
    total_score: int
    level: str
    behavioral_score: int
    physiological_score: int
    factors: Tuple[FactorContribution, ...]
    recommendation: str
    should_intervene: bool

    def to_dict(self) -> dict:
        return {
            "total_score": self.total_score,
            "level": self.level,
            "behavioral_score": self.behavioral_score,
            "physiological_score": self.physiological_score,
            "factors": [
                {
                    "key": f.factor.value,
                    "name": f.name,
                    "value": f.raw_value,
                    "contribution": f.weighted_contribution,
                    "weight": f.weight_percent,
                    "category": f.category.value,
                }
                for f in self.factors
            ],
            "recommendation": self.recommendation,
            "should_intervene": self.should_intervene,
        }


@dataclass(frozen=True)
class TrajectoryPrediction:
    """疲劳趋势预测结果，时间单位为样本间隔（约 1 分钟）"""
    predicted_score: float
    time_to_exhaustion_minutes: float
    trend: str
    recommendation: str
    slope: float = 0.0

    def to_dict(self) -> dict:
        tte = self.time_to_exhaustion_minutes
        return {
            "predicted_score": self.predicted_score,
            # JSON 无法表示无穷大
            "time_to_exhaustion_minutes": None if math.isinf(tte) else tte,
            "trend": self.trend,
            "recommendation": self.recommendation,
            "slope": self.slope,
        }


@dataclass(frozen=True)
class PatternResult:
    """疲劳类型归因结果"""
    pattern: str
    confidence: float
    causes: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class SessionSummary:
    """单次跟踪会话统计"""
    started_at_ms: Optional[int]
    duration_seconds: int
    peak_stress: int
    eye_fatigue_count: int
    intervention_triggered: bool
