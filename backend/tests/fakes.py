"""Test doubles for the upstream LLM and the PDF worker."""

import asyncio
import json
import threading
from typing import Dict, List, Optional

import httpx

from localingo.services.history.translation_log import TranslationLog
from localingo.services.pdf_tasks.worker_client import PdfWorkerError


LLM_URL = "http://llm.test/v1/chat/completions"


class RecordingLog:
    """Stands in for TranslationLog and keeps appended records in memory."""

    def __init__(self):
        self.records: List[Dict] = []

    def append(self, record):
        self.records.append(record)
        return True

    def append_in_background(self, record):
        self.append(record)


class GatedLog(TranslationLog):
    """Real TranslationLog whose writes block until `release` is set."""

    def __init__(self, path):
        super().__init__(path)
        self.release = threading.Event()

    def append(self, record):
        self.release.wait(timeout=10)
        return super().append(record)


class StepClock:
    """Deterministic clock: every call advances by `step` seconds."""

    def __init__(self, step=0.5):
        self.now = 0.0
        self.step = step

    def __call__(self):
        value = self.now
        self.now += self.step
        return value


def llm_transport(chunks, status_code=200, captured: Optional[Dict] = None):
    """MockTransport that streams `chunks` back as the response body."""

    def handler(request: httpx.Request) -> httpx.Response:
        if captured is not None:
            captured["url"] = str(request.url)
            captured["body"] = json.loads(request.content)

        async def body():
            for chunk in chunks:
                yield chunk

        return httpx.Response(status_code, content=body())

    return httpx.MockTransport(handler)


def failing_transport(exc: Exception):
    def handler(request: httpx.Request) -> httpx.Response:
        raise exc

    return httpx.MockTransport(handler)


def sse_frames(raw: str) -> List[Dict]:
    frames = []
    for block in raw.split("\n\n"):
        block = block.strip()
        if block.startswith("data: "):
            frames.append(json.loads(block[len("data: "):]))
    return frames


def delta(content=None, finish_reason=None) -> str:
    choice: Dict = {"delta": {}}
    if content is not None:
        choice["delta"]["content"] = content
    if finish_reason is not None:
        choice["finish_reason"] = finish_reason
    return "data: " + json.dumps({"choices": [choice]}, ensure_ascii=False) + "\n\n"


class FakeWorker:
    """Scripted PDF worker; `states` are returned in order, the last one repeats."""

    def __init__(self, states=None, task_id="task-1", files=None):
        self.states = list(states or [])
        self.task_id = task_id
        self.files = files if files is not None else {"mono": b"%PDF-mono", "dual": b"%PDF-dual"}
        self.submitted: List[Dict] = []
        self.downloads: List[str] = []
        self.deleted: List[str] = []
        self.delete_status = 200
        self.status_calls = 0

    async def submit(self, filename, content, data):
        self.submitted.append({"filename": filename, "content": content, "data": data})
        return self.task_id

    async def get_state(self, task_id):
        self.status_calls += 1
        await asyncio.sleep(0)
        if not self.states:
            return None
        if len(self.states) > 1:
            return self.states.pop(0)
        return self.states[0]

    async def download(self, task_id, role):
        self.downloads.append(role)
        await asyncio.sleep(0)
        data = self.files.get(role)
        if data is None:
            raise PdfWorkerError(f"下载 {role} 文件失败: HTTP 500", status_code=500)
        return data

    async def delete(self, task_id):
        self.deleted.append(task_id)
        return self.delete_status


def progress(n, total):
    return {"state": "PROGRESS", "info": {"n": n, "total": total}}


SUCCESS = {"state": "SUCCESS"}
FAILURE = {"state": "FAILURE"}
