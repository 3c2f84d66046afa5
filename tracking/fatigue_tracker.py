"""单会话逐帧生理疲劳跟踪"""

from typing import Optional

from detectors.blink_analyzer import BlinkRateAnalyzer
from detectors.eye_analyzer import EyeAnalyzer
from detectors.geometry import calculate_ear
from detectors.head_pose_analyzer import HeadPoseAnalyzer
from evaluators.fatigue_evaluator import FatigueEvaluator
from models.data_models import FaceLandmarks, FrameMetrics

# 默认阈值
DEFAULTS = {
    "ear_threshold": 0.22,
    "blink_cooldown_ms": 300,
    "blink_window_ms": 60000,
    "slump_offset_px": 30.0,
    "forward_head_px": 40.0,
    "tilt_threshold_deg": 15.0,
    "critical_stress": 15,
}


class FatigueTracker:
    """
    协调眼睛、眨眼频率和头部姿态分析器，每帧输出 FrameMetrics。

    一个实例对应一次跟踪会话，跨帧状态（眨眼历史、压力值、闭眼计数）
    只属于该实例；帧必须按时间顺序串行送入。
    """

    def __init__(self, config: Optional[dict] = None):
        config = {**DEFAULTS, **(config or {})}
        self.config = config

        self.blink_analyzer = BlinkRateAnalyzer(
            cooldown_ms=config["blink_cooldown_ms"],
            window_ms=config["blink_window_ms"],
        )
        self.eye_analyzer = EyeAnalyzer(
            ear_threshold=config["ear_threshold"],
            blink_analyzer=self.blink_analyzer,
        )
        self.head_pose_analyzer = HeadPoseAnalyzer(
            tilt_threshold=config["tilt_threshold_deg"],
            slump_offset=config["slump_offset_px"],
            forward_head_dist=config["forward_head_px"],
        )
        self.fatigue_evaluator = FatigueEvaluator(ear_threshold=config["ear_threshold"])

    def process(self, landmarks: Optional[FaceLandmarks], now: int) -> FrameMetrics:
        """
        处理一帧关键点。

        Args:
            landmarks: 人脸关键点，未检测到人脸时为 None
            now: 当前时间戳（毫秒）

        Returns:
            FrameMetrics；无人脸时为中性指标

        Raises:
            IndexError, TypeError: 关键点数据格式错误，此时跨帧状态不变
        """
        if landmarks is None:
            return self.fatigue_evaluator.no_face(self.eye_analyzer.stress_level)

        # 先完成全部几何计算，出错时不修改任何状态
        avg_ear = (calculate_ear(landmarks.left_eye) + calculate_ear(landmarks.right_eye)) / 2.0
        pose_result = self.head_pose_analyzer.analyze(landmarks.all_landmarks)

        eye_result = self.eye_analyzer.update(avg_ear, now)
        blink_result = self.blink_analyzer.analyze(now)

        return self.fatigue_evaluator.evaluate(eye_result, blink_result, pose_result)

    def reset(self):
        """清空全部会话状态"""
        self.eye_analyzer.reset()
        self.blink_analyzer.reset()
