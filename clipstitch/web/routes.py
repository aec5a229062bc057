"""Job API routes for clipstitch."""

import json
import logging
import queue
import threading
import uuid
from pathlib import Path

from flask import (
    Blueprint,
    Response,
    current_app,
    jsonify,
    request,
    send_file,
)

from clipstitch.engine import process
from clipstitch.errors import ClipStitchError, TaskListError
from clipstitch.ffutil import FFmpegNotFoundError
from clipstitch.manifest import FetchConfig, PipelineConfig, parse_tasks

logger = logging.getLogger(__name__)

bp = Blueprint("web", __name__)

# In-memory job store: job_id -> job dict
_jobs: dict[str, dict] = {}


@bp.route("/api/jobs", methods=["POST"])
def create_job():
    payload = request.get_json(silent=True)
    if payload is None:
        return jsonify({"error": "Request body must be JSON"}), 400

    tasks = payload.get("tasks") if isinstance(payload, dict) else payload
    try:
        requests = parse_tasks(tasks)
    except TaskListError as e:
        return jsonify({"error": str(e)}), 400

    max_height = 720
    if isinstance(payload, dict) and "max_height" in payload:
        try:
            max_height = int(payload["max_height"])
        except (TypeError, ValueError):
            return jsonify({"error": "max_height must be an integer"}), 400

    job_id = uuid.uuid4().hex[:12]
    job_dir = Path(current_app.config["WORK_DIR"]) / job_id
    job_dir.mkdir(parents=True, exist_ok=True)

    _jobs[job_id] = {
        "dir": job_dir,
        "requests": requests,
        "max_height": max_height,
        "status": "created",
    }

    return jsonify({"job_id": job_id, "task_count": len(requests)})


@bp.route("/api/jobs/<job_id>/process", methods=["POST"])
def start_process(job_id: str):
    if job_id not in _jobs:
        return jsonify({"error": "Job not found"}), 404

    job = _jobs[job_id]
    if job["status"] not in ("created", "done", "error"):
        return jsonify({"error": f"Job is already {job['status']}"}), 409

    job_dir = job["dir"]
    config = PipelineConfig(
        output=job_dir / "output.mp4",
        scratch_dir=job_dir / "segments",
        fetch=FetchConfig(
            cache_dir=Path(current_app.config["CACHE_DIR"]),
            max_height=job["max_height"],
        ),
    )

    progress_queue: queue.Queue = queue.Queue()
    job["progress_queue"] = progress_queue
    job["status"] = "processing"
    job["error"] = None

    def run():
        try:
            def on_progress(stage: str, frac: float):
                progress_queue.put({"stage": stage, "progress": round(frac, 3)})

            result = process(config, job["requests"], on_progress=on_progress)
            job["result"] = {
                "output_path": str(result.output_path) if result.merged else None,
                "produced_clip_count": result.produced_clip_count,
                "skipped_count": result.skipped_count,
                "skipped": [
                    {"index": s.index, "url": s.source_ref, "stage": s.stage, "reason": s.reason}
                    for s in result.skipped
                ],
                "duration": result.duration,
            }
            job["status"] = "done"
        except FFmpegNotFoundError as e:
            job["status"] = "error"
            job["error"] = str(e)
        except ClipStitchError as e:
            logger.error(f"Job {job_id} failed: {e}")
            job["status"] = "error"
            job["error"] = str(e)
        except Exception as e:
            logger.exception(f"Job {job_id} crashed")
            job["status"] = "error"
            job["error"] = str(e)
        finally:
            progress_queue.put(None)  # sentinel

    threading.Thread(target=run, daemon=True).start()
    return jsonify({"status": "started"})


@bp.route("/api/jobs/<job_id>/progress")
def progress_stream(job_id: str):
    if job_id not in _jobs:
        return jsonify({"error": "Job not found"}), 404

    job = _jobs[job_id]
    q = job.get("progress_queue")

    if q is None:
        return jsonify({"error": "No processing in progress"}), 409

    def generate():
        while True:
            try:
                msg = q.get(timeout=600)
            except queue.Empty:
                yield "data: {\"error\": \"timeout\"}\n\n"
                break
            if msg is None:
                if job["status"] == "error":
                    data = json.dumps({"error": job["error"]})
                else:
                    data = json.dumps({
                        "stage": "complete",
                        "progress": 1.0,
                        "result": job.get("result"),
                    })
                yield f"data: {data}\n\n"
                break
            yield f"data: {json.dumps(msg)}\n\n"

    return Response(generate(), mimetype="text/event-stream")


@bp.route("/api/jobs/<job_id>/result")
def download_result(job_id: str):
    if job_id not in _jobs:
        return jsonify({"error": "Job not found"}), 404

    job = _jobs[job_id]
    if job["status"] != "done":
        return jsonify({"error": "Job not complete"}), 409

    output_path = job["result"]["output_path"]
    if output_path is None:
        return jsonify({"error": "No segments were produced"}), 404
    return send_file(Path(output_path), as_attachment=False)


@bp.route("/api/jobs/<job_id>/status")
def job_status(job_id: str):
    if job_id not in _jobs:
        return jsonify({"error": "Job not found"}), 404

    job = _jobs[job_id]
    resp = {"status": job["status"], "task_count": len(job["requests"])}
    if job["status"] == "done":
        resp["result"] = job.get("result")
    if job["status"] == "error":
        resp["error"] = job.get("error")
    return jsonify(resp)
