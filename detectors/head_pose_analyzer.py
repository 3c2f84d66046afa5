"""头部姿态分析模块，由关键点几何关系判断塌肩、探头和歪头"""

from typing import Sequence

from detectors import geometry
from models.data_models import Keypoint, PoseResult


class HeadPoseAnalyzer:
    """单帧计算姿态惩罚分，各项可叠加，最大 60"""

    SLUMP_PENALTY = 30
    FORWARD_HEAD_PENALTY = 20
    TILT_PENALTY = 10

    def __init__(
        self,
        tilt_threshold: float = 15.0,
        slump_offset: float = geometry.SLUMP_OFFSET_PX,
        forward_head_dist: float = geometry.FORWARD_HEAD_PX,
        nose_idx: int = geometry.NOSE_TIP,
        chin_idx: int = geometry.CHIN,
        left_ear_idx: int = geometry.LEFT_EAR,
        right_ear_idx: int = geometry.RIGHT_EAR,
    ):
        """初始化阈值和关键点编号"""
        self.tilt_threshold = tilt_threshold
        self.slump_offset = slump_offset
        self.forward_head_dist = forward_head_dist
        self.nose_idx = nose_idx
        self.chin_idx = chin_idx
        self.left_ear_idx = left_ear_idx
        self.right_ear_idx = right_ear_idx

    def analyze(self, keypoints: Sequence[Keypoint]) -> PoseResult:
        """
        分析单帧头部姿态。

        Args:
            keypoints: 整张人脸关键点序列

        Returns:
            PoseResult(tilt_angle, is_slumping, is_forward_head, posture_score)
        """
        pose = geometry.calculate_head_pose(
            keypoints,
            nose_idx=self.nose_idx,
            chin_idx=self.chin_idx,
            left_ear_idx=self.left_ear_idx,
            right_ear_idx=self.right_ear_idx,
            slump_offset=self.slump_offset,
            forward_head_dist=self.forward_head_dist,
        )

        posture_score = 0
        if pose.is_slumping:
            posture_score += self.SLUMP_PENALTY
        if pose.is_forward_head:
            posture_score += self.FORWARD_HEAD_PENALTY
        if abs(pose.tilt_angle) > self.tilt_threshold:
            posture_score += self.TILT_PENALTY

        return PoseResult(
            tilt_angle=pose.tilt_angle,
            is_slumping=pose.is_slumping,
            is_forward_head=pose.is_forward_head,
            posture_score=posture_score,
        )
