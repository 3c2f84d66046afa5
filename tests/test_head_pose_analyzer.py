"""HeadPoseAnalyzer 单元测试"""

import pytest

from detectors.geometry import CHIN, LEFT_EAR, NOSE_TIP, RIGHT_EAR
from detectors.head_pose_analyzer import HeadPoseAnalyzer
from models.data_models import PoseResult


def _make_keypoints(nose=(320.0, 250.0), chin=(320.0, 330.0), left_ear=(420.0, 240.0), right_ear=(220.0, 240.0)):
    """生成 468 点人脸，只有姿态相关的四个点有意义"""
    points = [(0.0, 0.0)] * 468
    points[NOSE_TIP] = nose
    points[CHIN] = chin
    points[LEFT_EAR] = left_ear
    points[RIGHT_EAR] = right_ear
    return points


@pytest.fixture
def analyzer():
    return HeadPoseAnalyzer()


class TestPostureScore:
    """测试姿态惩罚分"""

    def test_returns_pose_result(self, analyzer):
        assert isinstance(analyzer.analyze(_make_keypoints()), PoseResult)

    def test_nominal_posture(self, analyzer):
        result = analyzer.analyze(_make_keypoints())
        assert result.posture_score == 0
        assert result.tilt_angle == pytest.approx(0.0)

    def test_slumping(self, analyzer):
        """鼻尖比双耳中点低 31px"""
        result = analyzer.analyze(_make_keypoints(nose=(320.0, 271.0), chin=(320.0, 351.0)))
        assert result.is_slumping
        assert result.posture_score >= 30

    def test_forward_head(self, analyzer):
        result = analyzer.analyze(_make_keypoints(chin=(320.0, 280.0)))
        assert result.is_forward_head
        assert result.posture_score == 20

    def test_excessive_tilt(self, analyzer):
        result = analyzer.analyze(_make_keypoints(left_ear=(420.0, 280.0), right_ear=(220.0, 200.0)))
        assert abs(result.tilt_angle) > 15
        assert result.posture_score == 10

    def test_swapped_ears_count_as_tilt(self, analyzer):
        """双耳左右互换时倾斜角为 180 度，计入歪头惩罚"""
        result = analyzer.analyze(_make_keypoints(left_ear=(220.0, 240.0), right_ear=(420.0, 240.0)))
        assert result.tilt_angle == pytest.approx(180.0)
        assert not result.is_slumping
        assert not result.is_forward_head
        assert result.posture_score == 10

    def test_penalties_are_additive(self, analyzer):
        result = analyzer.analyze(_make_keypoints(
            nose=(320.0, 300.0), chin=(320.0, 310.0),
            left_ear=(420.0, 280.0), right_ear=(220.0, 200.0),
        ))
        assert result.is_slumping
        assert result.is_forward_head
        assert result.posture_score == 60

    def test_custom_thresholds(self):
        analyzer = HeadPoseAnalyzer(tilt_threshold=45.0, slump_offset=5.0, forward_head_dist=100.0)
        result = analyzer.analyze(_make_keypoints(left_ear=(420.0, 280.0), right_ear=(220.0, 200.0)))
        # 鼻尖低于双耳中点 10px，下巴距鼻尖 80px，倾斜约 22 度
        assert result.is_slumping
        assert result.is_forward_head
        assert result.posture_score == 50

    def test_custom_indices(self):
        analyzer = HeadPoseAnalyzer(nose_idx=0, chin_idx=1, left_ear_idx=2, right_ear_idx=3)
        result = analyzer.analyze([(0.0, 100.0), (0.0, 200.0), (50.0, 0.0), (-50.0, 0.0)])
        assert result.is_slumping
        assert not result.is_forward_head
        assert result.posture_score == 30

    def test_short_keypoint_list_raises(self, analyzer):
        with pytest.raises(IndexError):
            analyzer.analyze([(0.0, 0.0)] * 5)
