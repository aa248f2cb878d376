"""翻译历史与语言列表API"""
from typing import Optional

from fastapi import APIRouter, Depends, Query

from localingo.dependencies import get_translation_log
from localingo.schemas.translate import LanguageItem, LanguageListResponse, TranslationHistoryResponse
from localingo.services.history.translation_log import TranslationLog
from localingo.utils.languages import LANGUAGE_MAP

router = APIRouter()


@router.get("/translations", response_model=TranslationHistoryResponse)
def list_translations(
    limit: int = Query(30, ge=1, le=500),
    kind: Optional[str] = Query(None, pattern="^(text|pdf)$"),
    log: TranslationLog = Depends(get_translation_log),
):
    """查询翻译历史（新记录在前）"""
    return {"items": log.recent(limit=limit, kind=kind)}


@router.get("/languages", response_model=LanguageListResponse)
async def list_languages():
    """可选语言列表"""
    return {"items": [LanguageItem(code=code, name=name) for code, name in LANGUAGE_MAP.items()]}
