# /// script
# requires-python = ">=3.12"
# dependencies = [
#     "litestar",
#     "python-multipart",
#     "uvicorn",
# ]
# ///

import asyncio
import http.server
import json
import os
import re
import socketserver
import threading
import uuid
from pathlib import Path
from threading import Lock
from typing import Annotated

from litestar import Litestar, get, post
from litestar.config.cors import CORSConfig
from litestar.enums import RequestEncodingType
from litestar.exceptions import NotFoundException, ValidationException
from litestar.params import Body
from litestar.response import Stream

from androidfx.build_log import BuildLog
from androidfx.generator import ProjectGeneratorTask
from androidfx.provision import find_android_sdk

# --- CONFIGURATION ---
BASE_DIR = Path(__file__).parent.absolute()
OUTPUT_DIR = Path(os.environ.get("ANDROIDFX_OUTPUT_DIR", "output")).absolute()
CACHE_DIR = Path(os.environ.get("ANDROIDFX_CACHE_DIR", "cache")).absolute()
WEB_DIR = BASE_DIR / "web_ui"
# None: packaged res/ plus what androidfx-setup fetched
RESOURCES_DIR = None

API_PORT = 9741
FRONTEND_PORT = 9742

# Dotted Java package, e.g. com.example.app
PACKAGE_NAME_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)*$")

# --- HELPERS ---

task_states = {}
task_logs = {}
task_states_lock = Lock()


def execute_generation_async(task_id: str, task: ProjectGeneratorTask) -> None:
    def update(msg, status, **kwargs):
        with task_states_lock:
            task_states[task_id].update({"message": msg, "status": status, **kwargs})

    if task.run():
        update("Done!", "complete", returncode=task.returncode)
    else:
        print(f"Generation Error: {task.exception}")
        update(
            f"Error: {task.exception}", "error", error=str(task.exception)
        )


# --- ROUTES ---


@post("/generate")
async def generate_project(
    data: Annotated[dict, Body(media_type=RequestEncodingType.MULTI_PART)],
) -> dict:
    package_name = (data.get("package_name") or "").strip()
    if not PACKAGE_NAME_RE.match(package_name):
        raise ValidationException(f"Invalid package name: {package_name!r}")

    android_sdk = (data.get("android_sdk") or "").strip() or find_android_sdk() or ""
    if not android_sdk:
        raise ValidationException("Android SDK path is required")

    upload = data.get("app_file")
    if upload is None or not getattr(upload, "filename", None):
        raise ValidationException("A JavaFX application file is required")
    app_filename = Path(upload.filename).name
    if not app_filename.endswith(".java"):
        raise ValidationException(f"Not a .java file: {app_filename}")

    # Never let the client pick a directory outside OUTPUT_DIR
    output_name = Path((data.get("output_name") or package_name).strip()).name
    if not output_name:
        raise ValidationException("Invalid output name")

    task_id = str(uuid.uuid4())
    app_file = CACHE_DIR / task_id / app_filename
    app_file.parent.mkdir(parents=True, exist_ok=True)
    app_file.write_bytes(await upload.read())

    log = BuildLog(echo=True)
    task = ProjectGeneratorTask(
        output_dir=OUTPUT_DIR / output_name,
        app_file=app_file,
        package_name=package_name,
        android_sdk=android_sdk,
        log=log,
        resources_dir=RESOURCES_DIR,
    )

    with task_states_lock:
        task_states[task_id] = {
            "status": "in_progress",
            "message": "Starting...",
            "output_dir": str(task.output_dir),
        }
        task_logs[task_id] = log

    threading.Thread(
        target=execute_generation_async, args=(task_id, task), daemon=True
    ).start()
    return {"task_id": task_id}


@get("/generate-log/{task_id:str}")
async def stream_log(task_id: str) -> Stream:
    async def generator():
        with task_states_lock:
            log = task_logs.get(task_id)
        if log is None:
            yield f"event: error\ndata: {json.dumps({'error': 'Invalid ID'})}\n\n"
            return

        sent = 0
        while True:
            # Read the state before draining: once it is final, the log is complete
            with task_states_lock:
                state = dict(task_states[task_id])

            log.drain()
            lines = log.lines
            for line in lines[sent:]:
                yield f"data: {json.dumps({'line': line})}\n\n"
            sent = len(lines)

            if state["status"] == "complete":
                yield f"event: complete\ndata: {json.dumps({'task_id': task_id})}\n\n"
                break
            if state["status"] == "error":
                yield f"event: error\ndata: {json.dumps({'error': state.get('error')})}\n\n"
                break
            await asyncio.sleep(0.5)

    return Stream(generator(), media_type="text/event-stream")


@get("/tasks/{task_id:str}")
async def task_status(task_id: str) -> dict:
    with task_states_lock:
        state = task_states.get(task_id)
        if state is None:
            raise NotFoundException(f"Unknown task: {task_id}")
        return dict(state)


# --- RUN ---
cors = CORSConfig(allow_origins=["*"])
app = Litestar(
    route_handlers=[generate_project, stream_log, task_status], cors_config=cors
)


class ReusableTCPServer(socketserver.TCPServer):
    allow_reuse_address = True


def main():
    import uvicorn

    os.chdir(WEB_DIR)

    def serve_front():
        handler = http.server.SimpleHTTPRequestHandler
        with ReusableTCPServer(("", FRONTEND_PORT), handler) as httpd:
            print(f"[FRONTEND] http://localhost:{FRONTEND_PORT}")
            httpd.serve_forever()

    threading.Thread(target=serve_front, daemon=True).start()
    print(f"[BACKEND] http://0.0.0.0:{API_PORT}")
    uvicorn.run(app, host="0.0.0.0", port=API_PORT, log_level="error")


if __name__ == "__main__":
    main()
