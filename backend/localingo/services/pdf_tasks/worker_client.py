"""HTTP client for the PDFMathTranslate worker API."""

from __future__ import annotations

from typing import Any, Dict, Optional
import json

import httpx


class PdfWorkerError(RuntimeError):
    """Raised when the PDF worker cannot be reached or answers with an error."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class PdfSubmissionError(PdfWorkerError):
    """Raised when a translation task cannot be submitted."""


class PdfWorkerClient:
    """
    Thin async wrapper over `/v1/translate`.

    Every call opens its own short-lived client with a call-specific timeout.
    """

    def __init__(
        self,
        base_url: str,
        *,
        submit_timeout_sec: float = 10.0,
        status_timeout_sec: float = 5.0,
        download_timeout_sec: float = 30.0,
        cancel_timeout_sec: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = (base_url or "").rstrip("/")
        self.submit_timeout_sec = float(submit_timeout_sec)
        self.status_timeout_sec = float(status_timeout_sec)
        self.download_timeout_sec = float(download_timeout_sec)
        self.cancel_timeout_sec = float(cancel_timeout_sec)
        self.transport = transport

    def _client(self, timeout_sec: float) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=timeout_sec, transport=self.transport)

    def _task_url(self, task_id: str, suffix: str = "") -> str:
        url = f"{self.base_url}/{task_id}"
        return f"{url}/{suffix}" if suffix else url

    async def submit(self, filename: str, content: bytes, data: Dict[str, Any]) -> str:
        """Upload a PDF plus its JSON parameters and return the task id."""
        try:
            async with self._client(self.submit_timeout_sec) as client:
                resp = await client.post(
                    self.base_url,
                    files={"file": (filename, content, "application/pdf")},
                    data={"data": json.dumps(data, ensure_ascii=False)},
                )
        except httpx.HTTPError as exc:
            raise PdfSubmissionError(f"翻译任务提交失败: {exc}") from exc

        if resp.status_code != 200:
            raise PdfSubmissionError(
                f"翻译任务提交失败: HTTP {resp.status_code} {resp.reason_phrase}",
                status_code=resp.status_code,
            )

        try:
            body = resp.json()
        except ValueError as exc:
            raise PdfSubmissionError("翻译任务提交失败: 返回不是合法 JSON") from exc

        task_id = body.get("id") if isinstance(body, dict) else None
        if not task_id:
            raise PdfSubmissionError("未获取到任务 ID")
        return str(task_id)

    async def get_state(self, task_id: str) -> Optional[Dict[str, Any]]:
        """Return the raw task state, or None when the worker does not know the task."""
        try:
            async with self._client(self.status_timeout_sec) as client:
                resp = await client.get(self._task_url(task_id))
        except httpx.HTTPError as exc:
            raise PdfWorkerError(f"查询任务状态失败: {exc}") from exc

        if resp.status_code == 404:
            return None
        if resp.status_code != 200:
            raise PdfWorkerError(
                f"查询任务状态失败: HTTP {resp.status_code}",
                status_code=resp.status_code,
            )
        try:
            body = resp.json()
        except ValueError as exc:
            raise PdfWorkerError("任务状态返回不是合法 JSON") from exc
        if not isinstance(body, dict):
            raise PdfWorkerError("任务状态格式错误")
        return body

    async def download(self, task_id: str, role: str) -> bytes:
        try:
            async with self._client(self.download_timeout_sec) as client:
                resp = await client.get(self._task_url(task_id, role))
        except httpx.HTTPError as exc:
            raise PdfWorkerError(f"下载 {role} 文件失败: {exc}") from exc

        if resp.status_code != 200:
            raise PdfWorkerError(
                f"下载 {role} 文件失败: HTTP {resp.status_code}",
                status_code=resp.status_code,
            )
        return resp.content

    async def delete(self, task_id: str) -> int:
        """Ask the worker to drop a task; returns the HTTP status code."""
        try:
            async with self._client(self.cancel_timeout_sec) as client:
                resp = await client.delete(self._task_url(task_id))
        except httpx.HTTPError as exc:
            raise PdfWorkerError(f"取消任务失败: {exc}") from exc
        return resp.status_code
