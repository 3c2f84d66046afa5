"""人脸关键点检测模块，基于 MediaPipe FaceMesh"""

from typing import Optional

import cv2
import mediapipe as mp
import numpy as np

from models.data_models import FaceLandmarks

# 关键点索引常量，点序: 外眼角, 上眼睑 x2, 内眼角, 下眼睑 x2
LEFT_EYE_INDICES = [33, 160, 158, 133, 153, 144]
RIGHT_EYE_INDICES = [362, 385, 387, 263, 373, 380]


class FaceDetectorInitError(RuntimeError):
    """FaceMesh 模型无法创建"""


class FaceDetector:
    """使用 MediaPipe FaceMesh 检测人脸关键点"""

    def __init__(
        self,
        max_num_faces: int = 1,
        min_detection_confidence: float = 0.5,
    ):
        """初始化 MediaPipe FaceMesh"""
        try:
            self._face_mesh = mp.solutions.face_mesh.FaceMesh(
                max_num_faces=max_num_faces,
                min_detection_confidence=min_detection_confidence,
                min_tracking_confidence=0.5,
                refine_landmarks=True,
            )
        except Exception as e:
            raise FaceDetectorInitError(f"FaceMesh 初始化失败: {e}") from e

    def detect(self, frame: np.ndarray) -> Optional[FaceLandmarks]:
        """
        检测单帧图像中的人脸关键点，只取第一张脸。

        Args:
            frame: BGR 格式的 OpenCV 图像帧

        Returns:
            FaceLandmarks 对象（像素坐标）；未检测到人脸时返回 None
        """
        h, w = frame.shape[:2]

        # BGR -> RGB
        rgb_frame = cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)
        rgb_frame.flags.writeable = False

        results = self._face_mesh.process(rgb_frame)

        if not results.multi_face_landmarks:
            return None

        face = results.multi_face_landmarks[0]

        # 将归一化坐标转换为像素坐标
        all_landmarks = [
            (lm.x * w, lm.y * h) for lm in face.landmark
        ]

        left_eye = [all_landmarks[i] for i in LEFT_EYE_INDICES]
        right_eye = [all_landmarks[i] for i in RIGHT_EYE_INDICES]

        return FaceLandmarks(
            left_eye=left_eye,
            right_eye=right_eye,
            all_landmarks=all_landmarks,
        )

    def close(self):
        """释放 MediaPipe 资源"""
        self._face_mesh.close()
