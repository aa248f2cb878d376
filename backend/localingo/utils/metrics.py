"""流式生成的耗时与吞吐指标"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class StreamMetrics:
    token_count: int
    time_to_first_token: float
    total_time: float
    tokens_per_sec: float

    def as_record(self) -> Dict[str, Any]:
        return {
            "token_count": self.token_count,
            "time_to_first_token": round(self.time_to_first_token, 3),
            "total_time": round(self.total_time, 3),
            "tokens_per_sec": round(self.tokens_per_sec, 2),
        }


def compute_stream_metrics(
    token_count: int,
    start_time: float,
    first_token_time: Optional[float],
    end_time: float,
) -> StreamMetrics:
    """
    计算 TTFT、总耗时与 tokens/sec。

    没有收到任何 token 时 TTFT 为 0；token_count 为 0 或总耗时为 0 时吞吐为 0。
    """
    total_time = end_time - start_time
    time_to_first_token = first_token_time - start_time if first_token_time is not None else 0.0
    if token_count > 0 and total_time > 0:
        tokens_per_sec = token_count / total_time
    else:
        tokens_per_sec = 0.0
    return StreamMetrics(
        token_count=token_count,
        time_to_first_token=time_to_first_token,
        total_time=total_time,
        tokens_per_sec=tokens_per_sec,
    )
