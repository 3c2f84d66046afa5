"""Flask JSON API - 疲劳监测系统"""

import datetime
import threading
from dataclasses import asdict

import cv2
from flask import Flask, jsonify, request

from evaluators.exhaustion_engine import calculate_exhaustion_index, parse_metrics
from evaluators.pattern_classifier import detect_exhaustion_pattern
from evaluators.trajectory_predictor import predict_fatigue_trajectory
from models.data_models import FrameMetrics
from tracking.frame_worker import FrameWorker

app = Flask(__name__)


class WebDetectionSystem:
    """Web 版检测系统，后台线程读取摄像头，提供实时指标和事件日志。"""

    MAX_LOG_ENTRIES = 200

    def __init__(self, worker=None):
        self._cap = None
        self._running = False
        self._thread = None
        self.worker = worker or FrameWorker()
        self._logs = []
        self._log_lock = threading.Lock()
        self._prev_state = {"face_detected": True, "eye_fatigue": False, "blink_fatigued": False}

    def start(self, camera_index=0):
        """初始化模型、打开摄像头并启动处理线程。"""
        if self._running:
            return True, "检测已在运行"
        if not self.worker.init():
            self._add_log("danger", f"关键点模型加载失败: {self.worker.init_error}")
            return False, "关键点模型加载失败"
        self._cap = cv2.VideoCapture(camera_index)
        if not self._cap.isOpened():
            self._add_log("danger", "无法打开摄像头")
            return False, "无法打开摄像头"
        self.worker.start_session()
        self._running = True
        self._add_log("info", "系统启动，摄像头已开启")
        self._thread = threading.Thread(target=self._process_loop, daemon=True)
        self._thread.start()
        return True, "摄像头启动成功"

    def stop(self):
        """停止检测，返回会话统计。"""
        self._running = False
        if self._thread is not None:
            self._thread.join(timeout=2.0)
            self._thread = None
        if self._cap is not None and self._cap.isOpened():
            self._cap.release()
        self._cap = None
        summary = self.worker.stop_session()
        self._add_log("info", "系统已停止")
        return summary

    def _process_loop(self):
        """后台处理循环。"""
        while self._running:
            if not self._cap or not self._cap.isOpened():
                break
            ret, frame = self._cap.read()
            if not ret:
                continue

            metrics = self.worker.process_frame(frame)
            if metrics is None:
                continue
            self._check_state_changes(metrics)

            monitor = self.worker.monitor
            if monitor is not None and monitor.intervention_triggered:
                self._add_log("danger", f"压力值达到 {metrics.stress_level}，已自动停止，请休息")
                self._running = False

    def _add_log(self, level, message):
        """添加一条系统日志。level: info / warning / danger"""
        entry = {
            "time": datetime.datetime.now().strftime("%H:%M:%S"),
            "level": level,
            "message": message,
        }
        with self._log_lock:
            self._logs.append(entry)
            if len(self._logs) > self.MAX_LOG_ENTRIES:
                self._logs = self._logs[-self.MAX_LOG_ENTRIES:]

    def _check_state_changes(self, metrics: FrameMetrics):
        """检测状态变化并记录日志。"""
        prev = self._prev_state

        if metrics.face_detected and not prev["face_detected"]:
            self._add_log("info", "检测到人脸")
        elif not metrics.face_detected and prev["face_detected"]:
            self._add_log("warning", "人脸丢失")

        if metrics.eye_fatigue and not prev["eye_fatigue"]:
            self._add_log("warning", f"闭眼/眯眼检测中 (EAR={metrics.avg_ear:.2f})")
        elif not metrics.eye_fatigue and prev["eye_fatigue"]:
            self._add_log("info", "睁眼恢复")

        if metrics.blink_fatigued and not prev["blink_fatigued"]:
            self._add_log("warning", f"眨眼频率异常 ({metrics.blinks_per_min} 次/分钟)")
        elif not metrics.blink_fatigued and prev["blink_fatigued"]:
            self._add_log("info", "眨眼频率恢复正常")

        self._prev_state = {
            "face_detected": metrics.face_detected,
            "eye_fatigue": metrics.eye_fatigue,
            "blink_fatigued": metrics.blink_fatigued,
        }

    def get_logs(self, since=0):
        """获取日志，since 为起始索引。"""
        with self._log_lock:
            return self._logs[since:], len(self._logs)

    def get_data(self):
        latest = self.worker.latest
        data = (latest or FrameMetrics()).to_dict()
        data["tracking"] = self.worker.is_tracking
        return data

    def physiological_metrics(self):
        """当前会话最新一帧对应的生理因子，无数据时为空"""
        if not self.worker.is_tracking or self.worker.latest is None:
            return {}
        return self.worker.latest.to_physiological_metrics()


# 全局检测系统实例
system = WebDetectionSystem()


def _json_body():
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def _fuse_from_request(data):
    behavioral = parse_metrics(data.get("behavioral"))
    if "physiological" in data:
        physiological = parse_metrics(data.get("physiological"))
    else:
        physiological = system.physiological_metrics()
    return calculate_exhaustion_index(behavioral, physiological)


# ---- Flask 路由 ----

@app.route("/api/start", methods=["POST"])
def api_start():
    data = _json_body()
    ok, message = system.start(camera_index=data.get("camera", 0))
    return jsonify({"success": ok, "message": message})


@app.route("/api/stop", methods=["POST"])
def api_stop():
    summary = system.stop()
    return jsonify({
        "success": True,
        "message": "检测已停止",
        "summary": asdict(summary) if summary is not None else None,
    })


@app.route("/api/data")
def api_data():
    return jsonify(system.get_data())


@app.route("/api/config", methods=["POST"])
def api_config():
    data = _json_body()
    system.worker.update_config(data)
    return jsonify({"success": True, "message": "配置已更新", "config": system.worker.config})


@app.route("/api/logs")
def api_logs():
    since = request.args.get("since", 0, type=int)
    logs, total = system.get_logs(since)
    return jsonify({"logs": logs, "total": total})


@app.route("/api/exhaustion", methods=["POST"])
def api_exhaustion():
    data = _json_body()
    return jsonify(_fuse_from_request(data).to_dict())


@app.route("/api/pattern", methods=["POST"])
def api_pattern():
    data = _json_body()
    result = detect_exhaustion_pattern(_fuse_from_request(data).factors)
    return jsonify({"pattern": result.pattern, "confidence": result.confidence, "causes": result.causes})


@app.route("/api/trajectory", methods=["POST"])
def api_trajectory():
    data = _json_body()
    history = [
        float(v) for v in data.get("history") or []
        if isinstance(v, (int, float)) and not isinstance(v, bool)
    ]
    return jsonify(predict_fatigue_trajectory(history).to_dict())


if __name__ == "__main__":
    app.run(host="0.0.0.0", port=5000, debug=False, threaded=True)
