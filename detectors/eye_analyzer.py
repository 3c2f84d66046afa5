"""眼睛状态分析模块，将连续低 EAR 帧转换为眨眼事件和累积压力值"""

from typing import List, Optional, Tuple

from detectors.blink_analyzer import BlinkRateAnalyzer
from detectors.geometry import calculate_ear
from models.data_models import EyeResult


class EyeAnalyzer:
    """维护闭眼帧计数器和压力累积器，闭眼起始帧登记眨眼"""

    def __init__(
        self,
        ear_threshold: float = 0.22,
        blink_analyzer: Optional[BlinkRateAnalyzer] = None,
        squint_frames: int = 2,
        stress_per_frame: float = 0.5,
        max_stress_per_squint: float = 5.0,
        stress_decay: float = 0.1,
    ):
        """初始化阈值、帧计数器和压力值"""
        self.ear_threshold = ear_threshold
        self.blink_analyzer = blink_analyzer
        self.squint_frames = squint_frames
        self.stress_per_frame = stress_per_frame
        self.max_stress_per_squint = max_stress_per_squint
        self.stress_decay = stress_decay
        self._frame_counter = 0
        self._stress_level = 0.0

    @property
    def stress_level(self) -> float:
        return self._stress_level

    def analyze(
        self,
        left_eye: List[Tuple[float, float]],
        right_eye: List[Tuple[float, float]],
        now: int,
    ) -> EyeResult:
        """
        分析双眼状态。

        Args:
            left_eye: 左眼 6 个关键点
            right_eye: 右眼 6 个关键点
            now: 当前时间戳（毫秒）

        Returns:
            EyeResult(ear, is_closed, stress_level, frame_count, blink_attempted)
        """
        avg_ear = (calculate_ear(left_eye) + calculate_ear(right_eye)) / 2.0
        return self.update(avg_ear, now)

    def update(self, avg_ear: float, now: int) -> EyeResult:
        """
        按单帧平均 EAR 更新状态。

        低于阈值: 计数器加一，仅在闭眼第一帧尝试登记眨眼。
        睁眼: 若上一段闭眼超过 squint_frames 帧视为眯眼，压力增加
        min(帧数 * stress_per_frame, max_stress_per_squint)；否则压力按 stress_decay 衰减。
        """
        is_closed = avg_ear < self.ear_threshold
        blink_attempted = False

        if is_closed:
            self._frame_counter += 1
            if self._frame_counter == 1:
                blink_attempted = True
                if self.blink_analyzer is not None:
                    self.blink_analyzer.register_blink(now)
        else:
            if self._frame_counter > self.squint_frames:
                self._stress_level += min(
                    self._frame_counter * self.stress_per_frame,
                    self.max_stress_per_squint,
                )
            elif self._stress_level > 0:
                self._stress_level = max(0.0, self._stress_level - self.stress_decay)
            self._frame_counter = 0

        return EyeResult(
            ear=avg_ear,
            is_closed=is_closed,
            stress_level=self._stress_level,
            frame_count=self._frame_counter,
            blink_attempted=blink_attempted,
        )

    def reset(self):
        """重置帧计数器和压力值"""
        self._frame_counter = 0
        self._stress_level = 0.0
