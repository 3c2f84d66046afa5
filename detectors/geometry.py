"""几何特征提取：EAR 与头部姿态，纯函数无状态"""

import math
from typing import Sequence

from models.data_models import HeadPose, Keypoint

# FaceMesh 468 点编号
NOSE_TIP = 1
CHIN = 152
LEFT_EAR = 234
RIGHT_EAR = 454

# 像素阈值针对 640x480 左右的输入、常规坐姿距离标定，其它分辨率需重新标定
SLUMP_OFFSET_PX = 30.0
FORWARD_HEAD_PX = 40.0


def _dist(a: Keypoint, b: Keypoint) -> float:
    return math.dist((a[0], a[1]), (b[0], b[1]))


def calculate_ear(eye_points: Sequence[Keypoint]) -> float:
    """
    计算单只眼睛的 EAR 值。

    公式: EAR = (|p1-p5| + |p2-p4|) / (2 * |p0-p3|)
    点序: 0=外眼角, 1/2=上眼睑, 3=内眼角, 4/5=下眼睑

    Args:
        eye_points: 6 个眼睛轮廓关键点 [(x, y), ...]，可带 z 分量

    Returns:
        EAR 值；不足 6 个点或分母为零时返回 0.0（视为闭眼）
    """
    if len(eye_points) < 6:
        return 0.0

    vertical_1 = _dist(eye_points[1], eye_points[5])
    vertical_2 = _dist(eye_points[2], eye_points[4])
    horizontal = _dist(eye_points[0], eye_points[3])

    if horizontal == 0.0:
        return 0.0

    return (vertical_1 + vertical_2) / (2.0 * horizontal)


def calculate_head_pose(
    keypoints: Sequence[Keypoint],
    nose_idx: int = NOSE_TIP,
    chin_idx: int = CHIN,
    left_ear_idx: int = LEFT_EAR,
    right_ear_idx: int = RIGHT_EAR,
    slump_offset: float = SLUMP_OFFSET_PX,
    forward_head_dist: float = FORWARD_HEAD_PX,
) -> HeadPose:
    """
    由鼻尖、下巴和双耳关键点估计头部姿态。

    - 倾斜角: 双耳连线与水平方向夹角（度）
    - 塌肩: 鼻尖低于双耳中点超过 slump_offset 像素
    - 探头: 下巴与鼻尖的纵向距离小于 forward_head_dist 像素

    Raises:
        IndexError: 关键点数量不足以覆盖给定编号
    """
    nose = keypoints[nose_idx]
    chin = keypoints[chin_idx]
    left_ear = keypoints[left_ear_idx]
    right_ear = keypoints[right_ear_idx]

    tilt_angle = math.degrees(math.atan2(left_ear[1] - right_ear[1], left_ear[0] - right_ear[0]))

    ear_mid_y = (left_ear[1] + right_ear[1]) / 2.0
    is_slumping = nose[1] > ear_mid_y + slump_offset
    is_forward_head = abs(chin[1] - nose[1]) < forward_head_dist

    return HeadPose(
        tilt_angle=tilt_angle,
        is_slumping=is_slumping,
        is_forward_head=is_forward_head,
    )
