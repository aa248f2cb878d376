"""Line framing for server-sent event streams."""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Union
import codecs
import json


DATA_PREFIX = "data:"
DONE_SENTINEL = "[DONE]"


class SseLineBuffer:
    """
    Reassemble arbitrarily split chunks into complete lines.

    The trailing segment after the last newline is carried over to the next
    `feed` call; `flush` returns whatever was never newline-terminated.
    """

    def __init__(self) -> None:
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self.remainder = ""

    def feed(self, chunk: Union[bytes, str]) -> List[str]:
        text = self._decoder.decode(chunk) if isinstance(chunk, bytes) else chunk
        self.remainder += text
        lines = self.remainder.split("\n")
        self.remainder = lines.pop()
        return lines

    def flush(self) -> str:
        rest = self.remainder + self._decoder.decode(b"", final=True)
        self.remainder = ""
        return rest


def parse_data_line(line: str) -> Optional[str]:
    """Return the payload of a `data:` line, or None for any other line."""
    stripped = line.strip()
    if not stripped.startswith(DATA_PREFIX):
        return None
    return stripped[len(DATA_PREFIX):].strip()


def format_sse(payload: Dict[str, Any]) -> str:
    return f"data: {json.dumps(payload, ensure_ascii=False)}\n\n"
