"""
帧处理工作者

以请求/响应方式串行处理视频帧：submit_frame() 返回 Future，同一时刻只允许
一帧在处理中。关键点检测在后台线程执行，跨帧状态只由该线程修改。
会话切换可能发生在其他线程（如 Web 配置接口），_pending、tracker、monitor
和 latest 的读写都在 _lock 内完成。
"""

import logging
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable, Optional

from models.data_models import FrameMetrics, SessionSummary
from tracking.fatigue_tracker import DEFAULTS, FatigueTracker
from tracking.session_monitor import SessionMonitor

logger = logging.getLogger(__name__)


class FrameInFlightError(RuntimeError):
    """上一帧尚未处理完成时再次提交"""


def _now_ms() -> int:
    return int(time.time() * 1000)


def _default_detector_factory():
    from detectors.face_detector import FaceDetector
    return FaceDetector()


class FrameWorker:
    """持有关键点检测器、当前会话的 FatigueTracker 与 SessionMonitor"""

    def __init__(
        self,
        config: Optional[dict] = None,
        detector_factory: Optional[Callable] = None,
        clock: Callable[[], int] = _now_ms,
    ):
        self.config = {**DEFAULTS, **(config or {})}
        self._detector_factory = detector_factory or _default_detector_factory
        self._clock = clock
        self._detector = None
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="frame-worker")
        self._lock = threading.Lock()
        self._pending: Optional[Future] = None
        self.init_error: Optional[str] = None
        self.tracker: Optional[FatigueTracker] = None
        self.monitor: Optional[SessionMonitor] = None
        self.latest: Optional[FrameMetrics] = None

    @property
    def is_ready(self) -> bool:
        return self._detector is not None

    @property
    def is_tracking(self) -> bool:
        return self.tracker is not None

    def init(self) -> bool:
        """创建关键点检测器，失败时记录 init_error 并返回 False"""
        if self._detector is not None:
            return True
        try:
            self._detector = self._detector_factory()
        except (RuntimeError, ImportError, OSError) as e:
            self.init_error = str(e)
            logger.error("关键点检测器初始化失败: %s", e)
            return False
        self.init_error = None
        logger.info("关键点检测器已就绪")
        return True

    def start_session(self):
        """开始新的跟踪会话，之前的全部跨帧状态被丢弃"""
        self._wait_pending()
        with self._lock:
            self.tracker = FatigueTracker(self.config)
            self.monitor = SessionMonitor(critical_stress=self.config["critical_stress"])
            self.monitor.start(self._clock())
            self.latest = None
        logger.info("跟踪会话开始")

    def stop_session(self) -> Optional[SessionSummary]:
        """结束会话并返回统计；未在跟踪时返回 None"""
        self._wait_pending()
        with self._lock:
            if self.monitor is None:
                return None
            summary = self.monitor.summary(self._clock())
            self.tracker = None
            self.monitor = None
        logger.info(
            "跟踪会话结束: 时长 %ds, 峰值压力 %d, 眼疲劳警告 %d 次",
            summary.duration_seconds, summary.peak_stress, summary.eye_fatigue_count,
        )
        return summary

    def update_config(self, config: dict):
        """更新阈值配置，正在进行的会话以新配置重新开始"""
        for key in DEFAULTS:
            if config.get(key) is not None:
                self.config[key] = config[key]
        if self.is_tracking:
            self.start_session()

    def submit_frame(
        self,
        frame,
        release: Optional[Callable[[], None]] = None,
        now: Optional[int] = None,
    ) -> Optional[Future]:
        """
        提交一帧图像。

        Args:
            frame: BGR 图像帧
            release: 帧缓冲释放回调，帧被接收后无论成功与否都会调用
            now: 时间戳（毫秒），默认取处理时刻

        Returns:
            结果为 FrameMetrics 的 Future（处理出错时结果为 None）；
            检测器未就绪或未在跟踪时丢弃该帧并返回 None

        Raises:
            FrameInFlightError: 上一帧尚未完成，此时帧仍归调用方所有
        """
        with self._lock:
            if self._pending is not None and not self._pending.done():
                raise FrameInFlightError("上一帧仍在处理中")

            if self._detector is not None and self.tracker is not None:
                self._pending = self._executor.submit(
                    self._process, frame, release, now, self.tracker, self.monitor,
                )
                return self._pending

        if release is not None:
            release()
        return None

    def process_frame(self, frame, now: Optional[int] = None) -> Optional[FrameMetrics]:
        """同步处理一帧，等价于 submit_frame(...).result()"""
        future = self.submit_frame(frame, now=now)
        if future is None:
            return None
        return future.result()

    def _process(self, frame, release, now, tracker, monitor) -> Optional[FrameMetrics]:
        try:
            landmarks = self._detector.detect(frame)
            if now is None:
                now = self._clock()
            metrics = tracker.process(landmarks, now)
            monitor.observe(metrics)
            with self._lock:
                # 会话已切换时不覆盖新会话的最新结果
                if tracker is self.tracker:
                    self.latest = metrics
            return metrics
        except Exception:
            logger.exception("帧处理失败，已跳过")
            return None
        finally:
            if release is not None:
                release()

    def _wait_pending(self):
        with self._lock:
            pending = self._pending
        if pending is not None:
            pending.result()

    def close(self):
        """结束会话并释放检测器和线程"""
        self.stop_session()
        self._executor.shutdown(wait=True)
        if self._detector is not None:
            self._detector.close()
            self._detector = None
