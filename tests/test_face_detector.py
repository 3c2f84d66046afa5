"""FaceDetector 单元测试"""

from unittest.mock import MagicMock, patch

import numpy as np
import pytest

from detectors.face_detector import (
    LEFT_EYE_INDICES,
    RIGHT_EYE_INDICES,
    FaceDetector,
    FaceDetectorInitError,
)
from models.data_models import FaceLandmarks

PATCH_TARGET = "detectors.face_detector.mp"


def _make_fake_landmark(x: float, y: float):
    """创建一个模拟的 MediaPipe landmark 对象"""
    lm = MagicMock()
    lm.x = x
    lm.y = y
    return lm


def _build_fake_results(num_landmarks: int = 478):
    """构建模拟的 MediaPipe FaceMesh 处理结果（归一化坐标）"""
    landmarks = []
    for i in range(num_landmarks):
        nx = (i % 100) / 100.0
        ny = (i // 100) / 100.0
        landmarks.append(_make_fake_landmark(nx, ny))

    face = MagicMock()
    face.landmark = landmarks

    results = MagicMock()
    results.multi_face_landmarks = [face]
    return results, landmarks


def _detector_with(mock_mp, results):
    mock_mesh = MagicMock()
    mock_mesh.process.return_value = results
    mock_mp.solutions.face_mesh.FaceMesh.return_value = mock_mesh
    return FaceDetector(), mock_mesh


class TestFaceDetectorDetect:
    """测试 detect() 方法"""

    @patch(PATCH_TARGET)
    def test_returns_none_when_no_face(self, mock_mp):
        no_face_results = MagicMock()
        no_face_results.multi_face_landmarks = None
        detector, _ = _detector_with(mock_mp, no_face_results)

        frame = np.zeros((480, 640, 3), dtype=np.uint8)
        assert detector.detect(frame) is None

    @patch(PATCH_TARGET)
    def test_returns_face_landmarks_when_face_detected(self, mock_mp):
        results, _ = _build_fake_results()
        detector, _ = _detector_with(mock_mp, results)

        result = detector.detect(np.zeros((480, 640, 3), dtype=np.uint8))

        assert isinstance(result, FaceLandmarks)
        assert len(result.all_landmarks) == 478
        assert len(result.left_eye) == 6
        assert len(result.right_eye) == 6

    @patch(PATCH_TARGET)
    def test_pixel_coordinates(self, mock_mp):
        """归一化坐标应乘以图像宽高"""
        w, h = 640, 480
        results, landmarks = _build_fake_results()
        detector, _ = _detector_with(mock_mp, results)

        result = detector.detect(np.zeros((h, w, 3), dtype=np.uint8))

        for pos, idx in enumerate(LEFT_EYE_INDICES):
            assert result.left_eye[pos] == pytest.approx((landmarks[idx].x * w, landmarks[idx].y * h))
        for pos, idx in enumerate(RIGHT_EYE_INDICES):
            assert result.right_eye[pos] == pytest.approx((landmarks[idx].x * w, landmarks[idx].y * h))

    @patch(PATCH_TARGET)
    def test_frame_passed_as_rgb(self, mock_mp):
        results, _ = _build_fake_results()
        detector, mock_mesh = _detector_with(mock_mp, results)

        frame = np.zeros((4, 4, 3), dtype=np.uint8)
        frame[..., 0] = 255  # BGR 中的蓝色通道
        detector.detect(frame)

        rgb = mock_mesh.process.call_args[0][0]
        assert rgb[0, 0, 2] == 255
        assert rgb[0, 0, 0] == 0


class TestFaceDetectorLifecycle:
    @patch(PATCH_TARGET)
    def test_init_failure_wrapped(self, mock_mp):
        mock_mp.solutions.face_mesh.FaceMesh.side_effect = RuntimeError("model missing")
        with pytest.raises(FaceDetectorInitError):
            FaceDetector()

    @patch(PATCH_TARGET)
    def test_close_releases_mesh(self, mock_mp):
        detector, mock_mesh = _detector_with(mock_mp, MagicMock())
        detector.close()
        mock_mesh.close.assert_called_once()
