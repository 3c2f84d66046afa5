"""会话统计：眼疲劳警告次数、峰值压力和压力干预"""

import logging
from typing import Optional

from models.data_models import FrameMetrics, SessionSummary

logger = logging.getLogger(__name__)


class SessionMonitor:
    """逐帧观察 FrameMetrics，压力达到 critical_stress 时标记需要干预"""

    def __init__(self, critical_stress: int = 15):
        self.critical_stress = critical_stress
        self.started_at: Optional[int] = None
        self.eye_fatigue_count = 0
        self.peak_stress = 0
        self.intervention_triggered = False
        self._prev_eye_fatigue = False

    def start(self, now: int):
        """开始新会话，清空统计"""
        self.started_at = now
        self.eye_fatigue_count = 0
        self.peak_stress = 0
        self.intervention_triggered = False
        self._prev_eye_fatigue = False

    def observe(self, metrics: FrameMetrics) -> bool:
        """
        记录一帧指标。

        Returns:
            本帧是否首次触发干预
        """
        if metrics.eye_fatigue and not self._prev_eye_fatigue:
            self.eye_fatigue_count += 1
        self._prev_eye_fatigue = metrics.eye_fatigue

        self.peak_stress = max(self.peak_stress, metrics.stress_level)

        if not self.intervention_triggered and metrics.stress_level >= self.critical_stress:
            self.intervention_triggered = True
            logger.warning("压力值 %d 达到阈值 %d，建议立即休息", metrics.stress_level, self.critical_stress)
            return True
        return False

    def summary(self, now: int) -> SessionSummary:
        duration = 0
        if self.started_at is not None:
            duration = max(0, (now - self.started_at) // 1000)
        return SessionSummary(
            started_at_ms=self.started_at,
            duration_seconds=int(duration),
            peak_stress=self.peak_stress,
            eye_fatigue_count=self.eye_fatigue_count,
            intervention_triggered=self.intervention_triggered,
        )
