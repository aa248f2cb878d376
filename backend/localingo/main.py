"""FastAPI应用主文件.

Review note:
- 文本翻译：SSE 流式中转到 LLM。
- PDF 翻译：提交到 PDFMathTranslate worker，前端轮询状态。
"""
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse
from fastapi.staticfiles import StaticFiles
from contextlib import asynccontextmanager
from pathlib import Path
import logging
import os

from localingo.config import settings
from localingo.dependencies import get_translation_log

logger = logging.getLogger("uvicorn.error")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """应用生命周期管理"""
    # 启动时执行
    logger.info("启动 %s ...", settings.APP_NAME)

    # 确保必要的目录存在
    os.makedirs(settings.DATA_DIR, exist_ok=True)
    os.makedirs(settings.PDF_DIR, exist_ok=True)
    os.makedirs(os.path.dirname(settings.TRANSLATIONS_FILE) or ".", exist_ok=True)

    logger.info("LLM Endpoint: %s", settings.LLM_ENDPOINT)
    logger.info("PDF Translate Endpoint: %s", settings.PDF_TRANSLATE_ENDPOINT)
    logger.info("保存翻译日志: %s", settings.SAVE_TRANSLATIONS)

    yield

    # 关闭时执行
    await get_translation_log().drain()
    logger.info("关闭 %s ...", settings.APP_NAME)


# 创建FastAPI应用
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="本地 LLM 翻译中转服务",
    lifespan=lifespan,
)

# 配置CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# 挂载静态文件目录
if os.path.exists(settings.PUBLIC_DIR):
    app.mount("/static", StaticFiles(directory=settings.PUBLIC_DIR), name="static")


@app.get("/")
async def root():
    """根路径：有前端页面时返回 index.html"""
    index_path = Path(settings.PUBLIC_DIR) / "index.html"
    if index_path.is_file():
        return FileResponse(index_path)
    return {
        "message": f"欢迎使用 {settings.APP_NAME} API",
        "version": settings.APP_VERSION,
        "docs": "/docs",
    }


@app.get("/health")
async def health_check():
    """健康检查"""
    return {
        "status": "ok",
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
    }


# 导入并注册路由
from localingo.api.v1 import translate_text, translate_pdf, history
app.include_router(translate_text.router, prefix="/api", tags=["translate-text"])
app.include_router(translate_pdf.router, prefix="/api", tags=["translate-pdf"])
app.include_router(history.router, prefix="/api", tags=["history"])


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "localingo.main:app",
        host="0.0.0.0",
        port=4567,
        reload=settings.DEBUG,
    )
