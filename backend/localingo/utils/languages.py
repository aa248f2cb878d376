"""语言映射与提示词模板"""
from __future__ import annotations

import json
from typing import Any, List, Optional


LANGUAGE_MAP = {
    "ja": "Japanese",
    "ja-easy": "Japanese(easy)",
    "en": "English",
    "zh": "Chinese",
    "zh-tw": "Taiwanese",
    "ko": "Korean",
    "ar": "Arabic",
    "it": "Italian",
    "id": "Indonesian",
    "nl": "Dutch",
    "es": "Spanish",
    "th": "Thai",
    "de": "German",
    "fr": "French",
    "vi": "Vietnamese",
    "ru": "Russian",
    "auto": "English|Japanese",  # 自动识别
}

# plamo-2-translate 的控制标记
PLAMO_OP = "<|plamo:op|>"
PLAMO_STOP_TOKENS = [PLAMO_OP, "<|plamo:reserved:0x1E|>"]


def language_name(code: Optional[str], fallback: str = "auto") -> str:
    """语言代码 -> 模型使用的语言名，未知代码回退到 fallback"""
    name = LANGUAGE_MAP.get((code or "").strip())
    if name:
        return name
    return LANGUAGE_MAP.get(fallback, fallback)


def build_text_prompt(text: str, source_lang: str, target_lang: str) -> str:
    input_lang = language_name(source_lang)
    output_lang = language_name(target_lang)
    return (
        f"{PLAMO_OP}dataset\ntranslation\n\n"
        f"{PLAMO_OP}input lang={input_lang}\n{text}"
        f"{PLAMO_OP}output lang={output_lang}"
    )


def build_pdf_prompt(lang_in: str, lang_out: str) -> str:
    """
    PDF worker 使用的提示词模板。

    `${text}` 由 worker 替换为每个文本块，语言名在这里直接填入。
    """
    return (
        f"{PLAMO_OP}dataset\ntranslation\n"
        f"{PLAMO_OP}input lang={lang_in}\n${{text}}\n"
        f"{PLAMO_OP}output lang={lang_out}"
    )


def parse_pages(raw: Any) -> Optional[List[int]]:
    """
    解析页码选择。

    支持 JSON 数组（"[1, 2, 3]"）、区间表达式（"1-3,5"）或 int 列表；
    空值返回 None，非法输入抛出 ValueError。
    """
    if raw is None:
        return None
    if isinstance(raw, str):
        text = raw.strip()
        if not text:
            return None
        if text.startswith("["):
            try:
                raw = json.loads(text)
            except json.JSONDecodeError as exc:
                raise ValueError(f"页码格式错误: {text}") from exc
        else:
            raw = _expand_ranges(text)

    if not isinstance(raw, list):
        raise ValueError("页码必须是列表或区间表达式")

    pages = set()
    for item in raw:
        if isinstance(item, bool) or not isinstance(item, int):
            try:
                item = int(str(item).strip())
            except ValueError as exc:
                raise ValueError(f"页码格式错误: {item}") from exc
        if item <= 0:
            raise ValueError(f"页码必须为正整数: {item}")
        pages.add(item)
    return sorted(pages) or None


def _expand_ranges(text: str) -> List[int]:
    pages: List[int] = []
    for part in text.split(","):
        part = part.strip()
        if not part:
            continue
        if "-" in part:
            lo_str, hi_str = part.split("-", 1)
            try:
                lo, hi = int(lo_str), int(hi_str)
            except ValueError as exc:
                raise ValueError(f"页码格式错误: {part}") from exc
            if lo > hi:
                raise ValueError(f"页码区间错误: {part}")
            pages.extend(range(lo, hi + 1))
        else:
            try:
                pages.append(int(part))
            except ValueError as exc:
                raise ValueError(f"页码格式错误: {part}") from exc
    return pages
