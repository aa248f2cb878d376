"""Filesystem storage for original and translated PDFs."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Optional
import glob
import re


ROLE_ORIGINAL = "original"
ROLE_MONO = "mono"
ROLE_DUAL = "dual"
ARTIFACT_ROLES = (ROLE_ORIGINAL, ROLE_MONO, ROLE_DUAL)

_TASK_ID_RE = re.compile(r"^[A-Za-z0-9_.\-]+$")


def make_timestamp(moment: Optional[datetime] = None) -> str:
    return (moment or datetime.now()).strftime("%Y%m%d_%H%M%S")


def validate_task_id(task_id: str) -> str:
    value = (task_id or "").strip()
    if not value or not _TASK_ID_RE.match(value) or value in {".", ".."}:
        raise ValueError(f"非法的任务 ID: {task_id!r}")
    return value


def validate_role(role: str) -> str:
    if role not in ARTIFACT_ROLES:
        raise ValueError(f"未知的文件类型: {role!r}")
    return role


def artifact_name(timestamp: str, task_id: str, role: str) -> str:
    """`<timestamp>_<task_id>_<role>.pdf`"""
    return f"{timestamp}_{validate_task_id(task_id)}_{validate_role(role)}.pdf"


class ArtifactStore:
    """Flat directory of PDFs; files are never evicted."""

    def __init__(self, base_dir: str | Path) -> None:
        self.base_dir = Path(base_dir)

    def ensure_dir(self) -> None:
        self.base_dir.mkdir(parents=True, exist_ok=True)

    def save(self, name: str, data: bytes) -> Path:
        if Path(name).name != name:
            raise ValueError(f"非法的文件名: {name!r}")
        self.ensure_dir()
        path = self.base_dir / name
        path.write_bytes(data)
        return path

    def find(self, task_id: str, role: str) -> Optional[Path]:
        task_id = validate_task_id(task_id)
        role = validate_role(role)
        if not self.base_dir.is_dir():
            return None
        # task ids may contain "_", so the glob alone can match another task
        exact = re.compile(rf"\d{{8}}_\d{{6}}_{re.escape(task_id)}_{role}\.pdf")
        for path in sorted(self.base_dir.glob(f"*_{glob.escape(task_id)}_{role}.pdf")):
            if exact.fullmatch(path.name) and path.is_file():
                return path
        return None

    def has(self, task_id: str, role: str) -> bool:
        return self.find(task_id, role) is not None
