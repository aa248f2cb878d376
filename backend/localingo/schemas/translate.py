"""翻译相关的Pydantic schemas"""
from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional


class TextTranslateRequest(BaseModel):
    """文本翻译请求"""
    text: str = Field(..., min_length=1, description="待翻译文本")
    source_lang: str = Field("auto", max_length=20, description="源语言代码")
    target_lang: str = Field("auto", max_length=20, description="目标语言代码")


class PdfSubmitResponse(BaseModel):
    """PDF 翻译任务提交结果"""
    task_id: str
    status: str = "submitted"


class PdfStatusResponse(BaseModel):
    """PDF 翻译任务状态（progress/success/failure/cancelled/unknown）"""
    status: str
    task_id: str
    current: Optional[int] = None
    total: Optional[int] = None
    progress: Optional[float] = None
    elapsed: Optional[float] = None
    estimated_remaining: Optional[float] = None
    mono_url: Optional[str] = None
    dual_url: Optional[str] = None
    error: Optional[str] = None
    state: Optional[str] = None


class PdfCancelResponse(BaseModel):
    success: bool
    task_id: str


class TranslationHistoryResponse(BaseModel):
    items: List[Dict[str, Any]] = []


class LanguageItem(BaseModel):
    code: str
    name: str


class LanguageListResponse(BaseModel):
    items: List[LanguageItem] = []
