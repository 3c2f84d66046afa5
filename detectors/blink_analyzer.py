"""眨眼频率分析模块，维护 60 秒滚动窗口内的眨眼时间戳"""

from collections import deque
from typing import Deque, Optional

from models.data_models import BlinkRateResult


class BlinkRateAnalyzer:
    """记录眨眼事件并计算每分钟眨眼次数与疲劳分"""

    # 正常眨眼频率 15-20 次/分钟
    OPTIMAL_LOW = 15
    OPTIMAL_HIGH = 20
    UNDER_BLINK_LIMIT = 10
    OVER_BLINK_LIMIT = 30
    UNDER_BLINK_SCORE = 50.0
    OVER_BLINK_SCORE = 40.0

    def __init__(self, cooldown_ms: int = 300, window_ms: int = 60000):
        """初始化去抖间隔和窗口长度（毫秒）"""
        self.cooldown_ms = cooldown_ms
        self.window_ms = window_ms
        self._blinks: Deque[int] = deque()
        self._last_blink_time: Optional[int] = None

    @property
    def blink_history(self) -> list:
        return list(self._blinks)

    def register_blink(self, now: int) -> bool:
        """
        登记一次眨眼。

        距上次登记不超过 cooldown_ms 的请求被忽略，避免一次眨眼跨多帧时重复计数。

        Returns:
            是否实际登记
        """
        if self._last_blink_time is not None and now - self._last_blink_time <= self.cooldown_ms:
            return False
        self._blinks.append(now)
        self._last_blink_time = now
        return True

    def analyze(self, now: int) -> BlinkRateResult:
        """
        淘汰窗口外的时间戳，返回当前眨眼频率和疲劳分。

        - < 10 次/分钟: 50 分，疲劳（凝视屏幕）
        - > 30 次/分钟: 40 分，疲劳（眼部刺激）
        - 15-20 次/分钟: 0 分
        - 其余: |17.5 - 频率| * 5
        """
        while self._blinks and now - self._blinks[0] >= self.window_ms:
            self._blinks.popleft()

        blinks_per_min = len(self._blinks)

        if blinks_per_min < self.UNDER_BLINK_LIMIT:
            score = self.UNDER_BLINK_SCORE
        elif blinks_per_min > self.OVER_BLINK_LIMIT:
            score = self.OVER_BLINK_SCORE
        elif self.OPTIMAL_LOW <= blinks_per_min <= self.OPTIMAL_HIGH:
            score = 0.0
        else:
            center = (self.OPTIMAL_LOW + self.OPTIMAL_HIGH) / 2.0
            score = abs(center - blinks_per_min) * 5

        is_fatigued = blinks_per_min < self.UNDER_BLINK_LIMIT or blinks_per_min > self.OVER_BLINK_LIMIT

        return BlinkRateResult(
            blinks_per_min=blinks_per_min,
            is_fatigued=is_fatigued,
            score=score,
        )

    def reset(self):
        """清空眨眼历史"""
        self._blinks.clear()
        self._last_blink_time = None
