"""Schemas包初始化"""
from localingo.schemas.translate import (
    TextTranslateRequest,
    PdfSubmitResponse,
    PdfStatusResponse,
    PdfCancelResponse,
    TranslationHistoryResponse,
    LanguageItem,
    LanguageListResponse,
)

__all__ = [
    "TextTranslateRequest",
    "PdfSubmitResponse",
    "PdfStatusResponse",
    "PdfCancelResponse",
    "TranslationHistoryResponse",
    "LanguageItem",
    "LanguageListResponse",
]
