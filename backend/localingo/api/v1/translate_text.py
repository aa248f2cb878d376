"""文本翻译API（SSE 流式输出）"""
from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse

from localingo.dependencies import get_text_relay
from localingo.schemas.translate import TextTranslateRequest
from localingo.services.relay.stream_relay import TextTranslationRelay

router = APIRouter()


@router.post("/translate-text")
async def translate_text(
    request: TextTranslateRequest,
    relay: TextTranslationRelay = Depends(get_text_relay),
):
    """流式文本翻译接口（SSE）"""
    return StreamingResponse(
        relay.stream(request.text, request.source_lang, request.target_lang),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",  # 禁用nginx缓冲
        },
    )
