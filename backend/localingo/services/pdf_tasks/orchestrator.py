"""PDF translation task orchestration.

Review note:
- 提交任务 -> 客户端轮询状态 -> 首次观察到 SUCCESS 时下载 mono/dual 并写翻译日志。
- 本地元数据只在 TaskRegistry 中保存（进程内），取出即消费，保证日志只写一次。
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional
import asyncio
import logging
import time

from localingo.services.history.translation_log import TranslationLog, build_pdf_record
from localingo.services.pdf_tasks.artifact_store import (
    ROLE_DUAL,
    ROLE_MONO,
    ROLE_ORIGINAL,
    ArtifactStore,
    artifact_name,
    make_timestamp,
    validate_task_id,
)
from localingo.services.pdf_tasks.task_registry import PdfTaskMetadata, TaskRegistry
from localingo.services.pdf_tasks.worker_client import (
    PdfSubmissionError,
    PdfWorkerClient,
    PdfWorkerError,
)
from localingo.utils.languages import build_pdf_prompt, language_name


logger = logging.getLogger("uvicorn.error")

STATE_PROGRESS = "PROGRESS"
STATE_SUCCESS = "SUCCESS"
STATE_FAILURE = "FAILURE"

RESULT_ROLES = (ROLE_MONO, ROLE_DUAL)
API_PREFIX = "/api/translate-pdf"


def artifact_url(task_id: str, role: str) -> str:
    return f"{API_PREFIX}/{task_id}/{role}"


def progress_percent(current: int, total: int) -> float:
    if total <= 0:
        return 0
    return round(current / total * 100, 1)


def _as_count(value: Any) -> int:
    try:
        return max(0, int(value or 0))
    except (TypeError, ValueError, OverflowError):
        return 0


class PdfTaskOrchestrator:
    def __init__(
        self,
        worker: PdfWorkerClient,
        artifacts: ArtifactStore,
        *,
        registry: Optional[TaskRegistry] = None,
        translation_log: Optional[TranslationLog] = None,
        save_translations: bool = True,
        service: str = "openailiked",
        thread: int = 10,
    ) -> None:
        self.worker = worker
        self.artifacts = artifacts
        self.registry = registry or TaskRegistry()
        self.translation_log = translation_log
        self.save_translations = save_translations
        self.service = service
        self.thread = thread
        self._finalize_locks: Dict[str, asyncio.Lock] = {}
        self._finalize_waiters: Dict[str, int] = {}

    def build_payload(self, source_lang: str, target_lang: str, pages: Optional[List[int]]) -> Dict[str, Any]:
        lang_in = language_name(source_lang, fallback="en")
        lang_out = language_name(target_lang, fallback="ja")
        payload: Dict[str, Any] = {
            "lang_in": lang_in,
            "lang_out": lang_out,
            "service": self.service,
            "thread": self.thread,
            "prompt": build_pdf_prompt(lang_in, lang_out),
        }
        if pages:
            payload["pages"] = list(pages)
        return payload

    async def submit(
        self,
        *,
        filename: Optional[str],
        content: Optional[bytes],
        source_lang: str = "en",
        target_lang: str = "ja",
        pages: Optional[List[int]] = None,
    ) -> Dict[str, Any]:
        if not filename or not content:
            raise ValueError("未上传 PDF 文件")

        payload = self.build_payload(source_lang, target_lang, pages)
        logger.info(
            "pdf-submit filename=%s source=%s target=%s pages=%s",
            filename,
            source_lang,
            target_lang,
            pages,
        )
        task_id = await self.worker.submit(filename, content, payload)
        try:
            validate_task_id(task_id)
        except ValueError as exc:
            raise PdfSubmissionError(str(exc)) from exc
        logger.info("pdf-submitted task_id=%s", task_id)

        timestamp = make_timestamp()
        original_file = artifact_name(timestamp, task_id, ROLE_ORIGINAL)
        try:
            path = await asyncio.to_thread(self.artifacts.save, original_file, content)
            logger.info("pdf-original-saved path=%s", path)
        except OSError:
            logger.exception("pdf-original-save-failed task_id=%s", task_id)

        self.registry.insert(
            PdfTaskMetadata(
                task_id=task_id,
                filename=filename,
                source_lang=source_lang,
                target_lang=target_lang,
                pages=list(pages) if pages else None,
                submitted_at=time.time(),
                timestamp=timestamp,
                original_file=original_file,
            )
        )
        return {"task_id": task_id, "status": "submitted"}

    async def get_status(self, task_id: str) -> Dict[str, Any]:
        validate_task_id(task_id)
        body = await self.worker.get_state(task_id)

        if body is None:
            if self.registry.take_if_present(task_id):
                logger.info("pdf-task-gone task_id=%s local-metadata=dropped", task_id)
            return {"status": "cancelled", "task_id": task_id}

        state = body.get("state")
        if state == STATE_PROGRESS:
            info = body.get("info")
            return self._progress_payload(task_id, info if isinstance(info, dict) else {})

        if state == STATE_SUCCESS:
            await self._finalize_success(task_id)
            return {
                "status": "success",
                "task_id": task_id,
                "mono_url": artifact_url(task_id, ROLE_MONO),
                "dual_url": artifact_url(task_id, ROLE_DUAL),
            }

        if state == STATE_FAILURE:
            if self.registry.take_if_present(task_id):
                logger.error("pdf-task-failed task_id=%s", task_id)
            return {"status": "failure", "task_id": task_id, "error": "翻译失败"}

        logger.warning("pdf-task-unknown-state task_id=%s state=%s", task_id, state)
        return {"status": "unknown", "task_id": task_id, "state": None if state is None else str(state)}

    def _progress_payload(self, task_id: str, info: Dict[str, Any]) -> Dict[str, Any]:
        current = _as_count(info.get("n"))
        total = _as_count(info.get("total"))
        self.registry.note_total(task_id, total)
        payload: Dict[str, Any] = {
            "status": "progress",
            "task_id": task_id,
            "current": current,
            "total": total,
            "progress": progress_percent(current, total),
        }
        meta = self.registry.get(task_id)
        if meta is not None:
            elapsed = max(0.0, time.time() - meta.submitted_at)
            if current > 0 and total > 0:
                remaining = elapsed / current * total - elapsed
            else:
                remaining = 0
            payload["elapsed"] = round(elapsed, 1)
            payload["estimated_remaining"] = round(max(0, remaining))
        return payload

    async def _finalize_success(self, task_id: str) -> None:
        lock = self._finalize_locks.setdefault(task_id, asyncio.Lock())
        self._finalize_waiters[task_id] = self._finalize_waiters.get(task_id, 0) + 1
        try:
            async with lock:
                await self._finalize_locked(task_id)
        finally:
            # 最后一个等待者离开时回收锁
            self._finalize_waiters[task_id] -= 1
            if self._finalize_waiters[task_id] == 0:
                del self._finalize_waiters[task_id]
                del self._finalize_locks[task_id]

    async def _finalize_locked(self, task_id: str) -> None:
        pending = self.registry.get(task_id)
        timestamp = pending.timestamp if pending and pending.timestamp else make_timestamp()
        files = await self._ensure_result_files(task_id, timestamp)

        meta = self.registry.take_if_present(task_id)
        if meta is None:
            return

        elapsed = time.time() - meta.submitted_at
        logger.info("pdf-task-succeeded task_id=%s elapsed=%.1fs", task_id, elapsed)
        if not (self.save_translations and self.translation_log):
            return
        record = build_pdf_record(
            task_id=task_id,
            filename=meta.filename,
            source_lang=meta.source_lang,
            target_lang=meta.target_lang,
            pages=meta.pages,
            metrics={
                "total_time": round(elapsed, 1),
                "total_pages": meta.total_pages,
                "mono_file": files.get(ROLE_MONO),
                "dual_file": files.get(ROLE_DUAL),
                "original_file": meta.original_file,
            },
        )
        self.translation_log.append_in_background(record)

    async def _ensure_result_files(self, task_id: str, timestamp: str) -> Dict[str, Optional[str]]:
        files: Dict[str, Optional[str]] = {}
        for role in RESULT_ROLES:
            existing = self.artifacts.find(task_id, role)
            if existing is not None:
                files[role] = existing.name
                continue
            files[role] = None
            try:
                data = await self.worker.download(task_id, role)
                path = await asyncio.to_thread(
                    self.artifacts.save,
                    artifact_name(timestamp, task_id, role),
                    data,
                )
            except (PdfWorkerError, OSError) as exc:
                logger.warning("pdf-artifact-download-failed task_id=%s role=%s reason=%s", task_id, role, exc)
                continue
            files[role] = path.name
            logger.info("pdf-artifact-saved task_id=%s role=%s path=%s", task_id, role, path)
        return files

    async def cancel(self, task_id: str) -> Dict[str, Any]:
        validate_task_id(task_id)
        status_code = await self.worker.delete(task_id)
        if 200 <= status_code < 300 or status_code == 404:
            self.registry.take_if_present(task_id)
            logger.info("pdf-task-cancelled task_id=%s worker-status=%s", task_id, status_code)
            return {"success": True, "task_id": task_id}
        logger.error("pdf-task-cancel-failed task_id=%s worker-status=%s", task_id, status_code)
        raise PdfWorkerError("取消任务失败", status_code=status_code)
