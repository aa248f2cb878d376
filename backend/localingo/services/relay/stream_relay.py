"""Streaming text translation relay.

Review note:
- 上游是 OpenAI 兼容的 SSE 流，chunk 边界与行边界无关，由 SseLineBuffer 重组。
- 每个请求独占一个 StreamState；收尾（指标 + 翻译日志）只执行一次。
- 任何失败都转成一条 `{error}` 帧，生成器总会结束。
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, AsyncGenerator, Callable, Dict, List, Optional
import errno
import json
import logging
import socket
import time

import httpx

from localingo.services.history.translation_log import TranslationLog, build_text_record
from localingo.services.relay.sse_buffer import (
    DONE_SENTINEL,
    SseLineBuffer,
    format_sse,
    parse_data_line,
)
from localingo.utils.languages import PLAMO_STOP_TOKENS, build_text_prompt
from localingo.utils.metrics import compute_stream_metrics


logger = logging.getLogger("uvicorn.error")


class LineAction(Enum):
    CONTINUE = "continue"
    DONE = "done"
    ABORT = "abort"


@dataclass
class LineResult:
    action: LineAction = LineAction.CONTINUE
    frames: List[Dict[str, Any]] = field(default_factory=list)


@dataclass
class StreamState:
    input_text: str
    source_lang: str
    target_lang: str
    start_time: float
    output: str = ""
    token_count: int = 0
    first_token_time: Optional[float] = None
    finalized: bool = False


class TextTranslationRelay:
    def __init__(
        self,
        *,
        endpoint_url: str,
        model: str,
        translation_log: Optional[TranslationLog] = None,
        save_translations: bool = True,
        failure_sentinel: str = "",
        connect_timeout_sec: float = 10.0,
        read_timeout_sec: float = 300.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.endpoint_url = endpoint_url
        self.model = model
        self.translation_log = translation_log
        self.save_translations = save_translations
        self.failure_sentinel = failure_sentinel or ""
        self.connect_timeout_sec = float(connect_timeout_sec)
        self.read_timeout_sec = float(read_timeout_sec)
        self.transport = transport
        self.clock = clock

    def build_request_body(self, text: str, source_lang: str, target_lang: str) -> Dict[str, Any]:
        return {
            "model": self.model,
            "messages": [
                {"role": "user", "content": build_text_prompt(text, source_lang, target_lang)},
            ],
            "stop": list(PLAMO_STOP_TOKENS),
            "stream": True,
        }

    async def stream(self, text: str, source_lang: str = "auto", target_lang: str = "auto") -> AsyncGenerator[str, None]:
        """Relay one translation as client SSE frames."""
        state = StreamState(
            input_text=text,
            source_lang=source_lang,
            target_lang=target_lang,
            start_time=self.clock(),
        )
        logger.info(
            "text-relay-start source=%s target=%s length=%s endpoint=%s",
            source_lang,
            target_lang,
            len(text or ""),
            self.endpoint_url,
        )
        timeout = httpx.Timeout(self.read_timeout_sec, connect=self.connect_timeout_sec)
        body = self.build_request_body(text, source_lang, target_lang)

        try:
            async with httpx.AsyncClient(timeout=timeout, transport=self.transport) as client:
                async with client.stream("POST", self.endpoint_url, json=body) as resp:
                    logger.info("text-relay-upstream status=%s", resp.status_code)
                    if resp.status_code != 200:
                        yield format_sse({"error": f"HTTP {resp.status_code}: {resp.reason_phrase}"})
                        return

                    buffer = SseLineBuffer()
                    async for chunk in resp.aiter_bytes():
                        for line in buffer.feed(chunk):
                            result = self._process_line(line, state)
                            for frame in result.frames:
                                yield format_sse(frame)
                            if result.action is not LineAction.CONTINUE:
                                return

                    # 连接可能在最后一个换行到达前关闭
                    tail = buffer.flush()
                    if tail.strip():
                        result = self._process_line(tail, state)
                        for frame in result.frames:
                            yield format_sse(frame)

                    if not state.finalized:
                        logger.warning("text-relay-truncated tokens=%s", state.token_count)
                        yield format_sse({"error": "LLM 响应意外中断"})
        except httpx.ConnectError as exc:
            message = describe_connect_error(exc)
            logger.error("text-relay-connect-failed endpoint=%s reason=%s", self.endpoint_url, exc)
            yield format_sse({"error": message})
        except httpx.TimeoutException as exc:
            logger.error("text-relay-timeout endpoint=%s reason=%s", self.endpoint_url, exc)
            yield format_sse({"error": "LLM 服务器响应超时"})
        except Exception as exc:
            logger.exception("text-relay-failed")
            yield format_sse({"error": str(exc) or exc.__class__.__name__})
        finally:
            logger.info("text-relay-closed tokens=%s finalized=%s", state.token_count, state.finalized)

    def _process_line(self, line: str, state: StreamState) -> LineResult:
        payload = parse_data_line(line)
        if payload is None:
            return LineResult()

        if payload == DONE_SENTINEL:
            frames = self._finalize(state, trigger="done")
            return LineResult(LineAction.DONE, frames)

        try:
            data = json.loads(payload)
        except ValueError as exc:
            logger.warning("text-relay-bad-payload reason=%s data=%s", exc, payload[:200])
            return LineResult()

        if state.finalized:
            return LineResult()

        choice = _first_choice(data)
        delta = choice.get("delta") if isinstance(choice.get("delta"), dict) else {}
        content = delta.get("content")
        frames: List[Dict[str, Any]] = []

        if isinstance(content, str) and content:
            if self.failure_sentinel:
                combined = state.output + content
                pos = combined.find(self.failure_sentinel)
                if pos >= 0:
                    # 标记之前尚未转发的部分先作为 token 发出
                    if pos > len(state.output):
                        frames.append(self._take_token(state, combined[len(state.output):pos]))
                    state.output = combined[:pos]
                    logger.warning("text-relay-failure-sentinel tokens=%s", state.token_count)
                    frames.append({"error": "翻译失败：模型返回了失败标记"})
                    frames.extend(self._finalize(state, trigger="abort"))
                    return LineResult(LineAction.ABORT, frames)

            frames.append(self._take_token(state, content))

        if choice.get("finish_reason"):
            frames.extend(self._finalize(state, trigger="finish"))
        return LineResult(LineAction.CONTINUE, frames)

    def _take_token(self, state: StreamState, content: str) -> Dict[str, Any]:
        state.token_count += 1
        if state.first_token_time is None:
            state.first_token_time = self.clock()
        state.output += content
        return {"token": content}

    def _finalize(self, state: StreamState, *, trigger: str) -> List[Dict[str, Any]]:
        if state.finalized:
            return []
        state.finalized = True

        metrics = compute_stream_metrics(
            state.token_count,
            state.start_time,
            state.first_token_time,
            self.clock(),
        )
        logger.info(
            "text-relay-finalized trigger=%s tokens=%s ttft=%.3fs total=%.3fs tps=%.2f",
            trigger,
            metrics.token_count,
            metrics.time_to_first_token,
            metrics.total_time,
            metrics.tokens_per_sec,
        )

        if self.save_translations and self.translation_log and state.output:
            record = build_text_record(
                input_text=state.input_text,
                output_text=state.output,
                source_lang=state.source_lang,
                target_lang=state.target_lang,
                metrics=metrics.as_record(),
            )
            # 后台写盘，不阻塞 done 帧
            self.translation_log.append_in_background(record)

        if trigger == "abort":
            return []
        if trigger == "finish" and state.token_count == 0:
            logger.warning("text-relay-empty-output")
            return [{"error": "翻译失败：模型未生成任何内容"}]
        return [{"done": True}]


def _first_choice(data: Any) -> Dict[str, Any]:
    if not isinstance(data, dict):
        return {}
    choices = data.get("choices")
    if isinstance(choices, list) and choices and isinstance(choices[0], dict):
        return choices[0]
    return {}


def describe_connect_error(exc: BaseException) -> str:
    """Map a connect failure to a client-facing message."""
    seen = set()
    current: Optional[BaseException] = exc
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        if isinstance(current, socket.gaierror):
            return f"网络错误: {current}"
        if isinstance(current, ConnectionRefusedError):
            return "无法连接到 LLM 服务器"
        if isinstance(current, OSError) and current.errno in (errno.EHOSTUNREACH, errno.ENETUNREACH):
            return "无法访问 LLM 服务器"
        current = current.__cause__ or current.__context__

    text = str(exc).lower()
    if "name or service not known" in text or "nodename nor servname" in text or "getaddrinfo" in text:
        return f"网络错误: {exc}"
    if "unreachable" in text:
        return "无法访问 LLM 服务器"
    return "无法连接到 LLM 服务器"
