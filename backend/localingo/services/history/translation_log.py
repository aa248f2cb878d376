"""Append-only JSON log of completed translations."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Set
import asyncio
import json
import logging
import threading


logger = logging.getLogger("uvicorn.error")


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class TranslationLog:
    """
    Whole-file JSON array, rewritten on every append.

    Appends are serialized with a process-wide lock; a missing or corrupted
    file reads as an empty log.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self._lock = threading.Lock()
        self._pending: Set[asyncio.Future] = set()

    def load(self) -> List[Dict[str, Any]]:
        if not self.path.exists():
            return []
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            logger.warning("translation-log-unreadable path=%s reason=%s", self.path, exc)
            return []
        if not isinstance(data, list):
            logger.warning("translation-log-unreadable path=%s reason=not-a-list", self.path)
            return []
        return data

    def append(self, record: Dict[str, Any]) -> bool:
        """Append one record. Failures are logged and reported as False."""
        try:
            with self._lock:
                records = self.load()
                records.append(record)
                self.path.parent.mkdir(parents=True, exist_ok=True)
                tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
                tmp_path.write_text(
                    json.dumps(records, ensure_ascii=False, indent=2),
                    encoding="utf-8",
                )
                tmp_path.replace(self.path)
        except Exception:
            logger.exception("translation-log-write-failed path=%s type=%s", self.path, record.get("type"))
            return False
        logger.info("translation-log-saved path=%s type=%s", self.path, record.get("type"))
        return True

    def append_in_background(self, record: Dict[str, Any]) -> asyncio.Future:
        """
        Schedule `append` on the default executor and return without waiting.

        The future is kept until it settles so pending writes can be drained;
        asyncio.run also joins the executor on shutdown.
        """
        future = asyncio.get_running_loop().run_in_executor(None, self.append, record)
        self._pending.add(future)
        future.add_done_callback(self._write_settled)
        return future

    def _write_settled(self, future: asyncio.Future) -> None:
        self._pending.discard(future)
        if future.cancelled():
            return
        exc = future.exception()
        if exc is not None:
            logger.error("translation-log-write-failed path=%s reason=%s", self.path, exc)

    @property
    def pending_writes(self) -> int:
        return len(self._pending)

    async def drain(self) -> None:
        """Wait for writes started with `append_in_background`."""
        pending = [f for f in self._pending if not f.done()]
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

    def recent(self, limit: int = 30, kind: Optional[str] = None) -> List[Dict[str, Any]]:
        rows = [r for r in self.load() if isinstance(r, dict)]
        if kind:
            rows = [r for r in rows if r.get("type") == kind]
        rows.reverse()
        return rows[: max(0, int(limit))]


def build_text_record(
    *,
    input_text: str,
    output_text: str,
    source_lang: str,
    target_lang: str,
    metrics: Dict[str, Any],
) -> Dict[str, Any]:
    return {
        "type": "text",
        "timestamp": now_iso(),
        "source_lang": source_lang,
        "target_lang": target_lang,
        "input": input_text,
        "output": output_text,
        "metrics": metrics,
    }


def build_pdf_record(
    *,
    task_id: str,
    filename: str,
    source_lang: str,
    target_lang: str,
    pages: Optional[List[int]],
    metrics: Dict[str, Any],
) -> Dict[str, Any]:
    return {
        "type": "pdf",
        "timestamp": now_iso(),
        "task_id": task_id,
        "filename": filename,
        "source_lang": source_lang,
        "target_lang": target_lang,
        "pages": pages,
        "metrics": metrics,
    }
