"""In-process registry of submitted PDF translation tasks."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional
import threading
import time


@dataclass
class PdfTaskMetadata:
    task_id: str
    filename: str
    source_lang: str
    target_lang: str
    pages: Optional[List[int]]
    submitted_at: float = field(default_factory=time.time)
    timestamp: str = ""
    original_file: str = ""
    total_pages: Optional[int] = None


class TaskRegistry:
    """
    Metadata for tasks that are submitted but not yet finalized.

    `take_if_present` is the only way an entry leaves the registry, so the
    caller that receives the entry is the one allowed to finalize the task.
    """

    def __init__(self) -> None:
        self._items: Dict[str, PdfTaskMetadata] = {}
        self._lock = threading.Lock()

    def insert(self, meta: PdfTaskMetadata) -> None:
        with self._lock:
            self._items[meta.task_id] = meta

    def take_if_present(self, task_id: str) -> Optional[PdfTaskMetadata]:
        with self._lock:
            return self._items.pop(task_id, None)

    def get(self, task_id: str) -> Optional[PdfTaskMetadata]:
        with self._lock:
            return self._items.get(task_id)

    def note_total(self, task_id: str, total: int) -> None:
        with self._lock:
            meta = self._items.get(task_id)
            if meta is not None and total and total > (meta.total_pages or 0):
                meta.total_pages = total

    def __contains__(self, task_id: object) -> bool:
        with self._lock:
            return task_id in self._items

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)
