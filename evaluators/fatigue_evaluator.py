"""单帧生理疲劳汇总模块"""

from models.data_models import BlinkRateResult, EyeResult, FrameMetrics, PoseResult
from evaluators.scoring import round_half_up

# EAR 40% + 眨眼频率 30% + 姿态 20% + 压力 10%
EAR_WEIGHT = 0.4
BLINK_WEIGHT = 0.3
POSTURE_WEIGHT = 0.2
STRESS_WEIGHT = 0.1


class FatigueEvaluator:
    """汇总眼睛、眨眼频率、头部姿态和压力值，输出单帧生理疲劳分（越高越疲劳）。"""

    def __init__(self, ear_threshold: float = 0.22):
        self.ear_threshold = ear_threshold

    def ear_score(self, avg_ear: float) -> float:
        """EAR 低于阈值时按 (阈值 - EAR) * 500 线性映射到 0-100"""
        if avg_ear >= self.ear_threshold:
            return 0.0
        return min((self.ear_threshold - avg_ear) * 500, 100.0)

    def evaluate(
        self,
        eye_result: EyeResult,
        blink_result: BlinkRateResult,
        pose_result: PoseResult,
    ) -> FrameMetrics:
        """
        综合单帧指标。

        Args:
            eye_result: 眼睛分析结果（含累积压力）
            blink_result: 眨眼频率分析结果
            pose_result: 头部姿态分析结果

        Returns:
            FrameMetrics 快照
        """
        ear_score = self.ear_score(eye_result.ear)
        stress = eye_result.stress_level

        physiological = (
            ear_score * EAR_WEIGHT
            + blink_result.score * BLINK_WEIGHT
            + pose_result.posture_score * POSTURE_WEIGHT
            + min(stress * 2, 100) * STRESS_WEIGHT
        )

        return FrameMetrics(
            eye_fatigue=eye_result.is_closed,
            stress_level=int(stress),
            avg_ear=eye_result.ear,
            ear_score=round_half_up(ear_score),
            blinks_per_min=blink_result.blinks_per_min,
            blink_rate_score=round_half_up(blink_result.score),
            blink_fatigued=blink_result.is_fatigued,
            is_slumping=pose_result.is_slumping,
            is_forward_head=pose_result.is_forward_head,
            head_tilt_deg=round_half_up(pose_result.tilt_angle),
            posture_score=round_half_up(pose_result.posture_score),
            physiological_score=round_half_up(physiological),
            face_detected=True,
            raw_stress=stress,
        )

    @staticmethod
    def no_face(stress_level: float = 0.0) -> FrameMetrics:
        """未检测到人脸时的中性指标，压力值保持不变"""
        return FrameMetrics(stress_level=int(stress_level), raw_stress=stress_level)
