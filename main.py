"""疲劳监测系统命令行入口"""

import argparse
import json
import logging
import sys
import time

import cv2

from tracking.fatigue_tracker import DEFAULTS
from tracking.frame_worker import FrameWorker

logger = logging.getLogger(__name__)

# 默认阈值
_DEFAULTS = dict(DEFAULTS)

LOG_INTERVAL_SECONDS = 1.0


class DetectionSystem:
    """读取摄像头帧，串行送入 FrameWorker，并按秒输出生理疲劳指标。"""

    def __init__(self, config_path=None, camera_index=0, worker=None):
        self.camera_index = camera_index
        self._cap = None
        self.config = self._load_config(config_path)
        self.worker = worker or FrameWorker(self.config)

    @staticmethod
    def _load_config(config_path):
        """从 JSON 配置文件加载阈值参数，缺失字段使用默认值。"""
        config = dict(_DEFAULTS)

        if config_path is None:
            return config

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            logger.warning("配置文件不存在 %s，使用默认阈值", config_path)
            return config
        except json.JSONDecodeError:
            logger.warning("配置文件格式错误 %s，使用默认阈值", config_path)
            return config

        # 用配置文件中的值覆盖默认值
        for key in _DEFAULTS:
            if key in data and data[key] is not None:
                config[key] = data[key]

        return config

    def run(self):
        """启动主检测循环。"""
        if not self.worker.init():
            logger.error("无法加载关键点模型: %s", self.worker.init_error)
            sys.exit(1)

        self._cap = cv2.VideoCapture(self.camera_index)
        if not self._cap.isOpened():
            logger.error("无法打开摄像头 %s", self.camera_index)
            sys.exit(1)

        self.worker.start_session()
        try:
            self._main_loop()
        except KeyboardInterrupt:
            logger.info("收到中断信号")
        finally:
            self.stop()

    def _main_loop(self):
        """视频流处理主循环，上一帧结果返回后才提交下一帧。"""
        last_log = 0.0
        while True:
            ret, frame = self._cap.read()
            if not ret:
                continue

            metrics = self.worker.process_frame(frame)
            if metrics is None:
                continue

            if time.monotonic() - last_log >= LOG_INTERVAL_SECONDS:
                last_log = time.monotonic()
                logger.info(
                    "生理疲劳 %d | EAR %.3f | 眨眼 %d/min | 姿态 %d | 压力 %d",
                    metrics.physiological_score, metrics.avg_ear,
                    metrics.blinks_per_min, metrics.posture_score, metrics.stress_level,
                )

            if self.worker.monitor is not None and self.worker.monitor.intervention_triggered:
                logger.warning("持续眯眼导致压力过高，已停止跟踪，请休息后再继续")
                break

    def stop(self):
        """结束会话、释放摄像头和关键点检测器。"""
        summary = self.worker.stop_session()
        if summary is not None:
            logger.info("会话统计: %s", summary)
        if self._cap is not None and self._cap.isOpened():
            self._cap.release()
        self.worker.close()


def main():
    parser = argparse.ArgumentParser(description="实时疲劳监测系统")
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="JSON 阈值配置文件路径",
    )
    parser.add_argument(
        "--camera",
        type=int,
        default=0,
        help="摄像头编号",
    )
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    system = DetectionSystem(config_path=args.config, camera_index=args.camera)
    system.run()


if __name__ == "__main__":
    main()
