"""PDF 翻译API.

Review note:
- 提交 / 轮询状态 / 取消 / 下载产物。
- 轮询节奏完全由前端决定，后端每次只向 worker 查询一次。
"""
from typing import Optional
import logging

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from fastapi.responses import FileResponse

from localingo.dependencies import get_artifact_store, get_pdf_orchestrator
from localingo.schemas.translate import PdfCancelResponse, PdfStatusResponse, PdfSubmitResponse
from localingo.services.pdf_tasks.artifact_store import ArtifactStore, validate_role, validate_task_id
from localingo.services.pdf_tasks.orchestrator import PdfTaskOrchestrator
from localingo.services.pdf_tasks.worker_client import PdfWorkerError
from localingo.utils.languages import parse_pages

router = APIRouter()
logger = logging.getLogger("uvicorn.error")


@router.post("/translate-pdf", response_model=PdfSubmitResponse)
async def submit_pdf_translation(
    file: Optional[UploadFile] = File(None),
    source_lang: str = Form("en"),
    target_lang: str = Form("ja"),
    pages: Optional[str] = Form(None),
    orchestrator: PdfTaskOrchestrator = Depends(get_pdf_orchestrator),
):
    """提交 PDF 翻译任务"""
    if file is None or not file.filename:
        raise HTTPException(status_code=400, detail="未上传 PDF 文件")
    try:
        page_list = parse_pages(pages)
        content = await file.read()
        return await orchestrator.submit(
            filename=file.filename,
            content=content,
            source_lang=source_lang,
            target_lang=target_lang,
            pages=page_list,
        )
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    except PdfWorkerError as exc:
        raise HTTPException(status_code=502, detail=str(exc))
    except Exception as exc:
        logger.exception("pdf-submit-failed")
        raise HTTPException(status_code=500, detail=f"提交任务失败: {exc}")


@router.get(
    "/translate-pdf/{task_id}/status",
    response_model=PdfStatusResponse,
    response_model_exclude_none=True,
)
async def get_pdf_translation_status(
    task_id: str,
    orchestrator: PdfTaskOrchestrator = Depends(get_pdf_orchestrator),
):
    """查询翻译任务状态"""
    try:
        return await orchestrator.get_status(task_id)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    except PdfWorkerError as exc:
        raise HTTPException(status_code=502, detail=str(exc))
    except Exception as exc:
        logger.exception("pdf-status-failed task_id=%s", task_id)
        raise HTTPException(status_code=500, detail=f"查询任务失败: {exc}")


@router.delete("/translate-pdf/{task_id}", response_model=PdfCancelResponse)
async def cancel_pdf_translation(
    task_id: str,
    orchestrator: PdfTaskOrchestrator = Depends(get_pdf_orchestrator),
):
    """取消翻译任务"""
    try:
        return await orchestrator.cancel(task_id)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    except PdfWorkerError as exc:
        raise HTTPException(status_code=exc.status_code or 500, detail=str(exc))
    except Exception as exc:
        logger.exception("pdf-cancel-failed task_id=%s", task_id)
        raise HTTPException(status_code=500, detail=f"取消任务失败: {exc}")


@router.get("/translate-pdf/{task_id}/{role}")
async def download_pdf_artifact(
    task_id: str,
    role: str,
    store: ArtifactStore = Depends(get_artifact_store),
):
    """下载原始 / mono / dual PDF"""
    try:
        validate_task_id(task_id)
        validate_role(role)
    except ValueError:
        raise HTTPException(status_code=404, detail="文件不存在")

    path = store.find(task_id, role)
    if path is None:
        raise HTTPException(status_code=404, detail="文件不存在")
    return FileResponse(path, media_type="application/pdf", filename=path.name)
