"""服务单例（FastAPI 依赖注入）

测试中通过 app.dependency_overrides 替换。
"""
from functools import lru_cache

from localingo.config import settings
from localingo.services.history.translation_log import TranslationLog
from localingo.services.pdf_tasks.artifact_store import ArtifactStore
from localingo.services.pdf_tasks.orchestrator import PdfTaskOrchestrator
from localingo.services.pdf_tasks.worker_client import PdfWorkerClient
from localingo.services.relay.stream_relay import TextTranslationRelay


@lru_cache(maxsize=1)
def get_translation_log() -> TranslationLog:
    return TranslationLog(settings.TRANSLATIONS_FILE)


@lru_cache(maxsize=1)
def get_artifact_store() -> ArtifactStore:
    return ArtifactStore(settings.PDF_DIR)


@lru_cache(maxsize=1)
def get_text_relay() -> TextTranslationRelay:
    return TextTranslationRelay(
        endpoint_url=settings.llm_chat_url,
        model=settings.LLM_MODEL,
        translation_log=get_translation_log(),
        save_translations=settings.SAVE_TRANSLATIONS,
        failure_sentinel=settings.LLM_FAILURE_SENTINEL,
        connect_timeout_sec=settings.LLM_CONNECT_TIMEOUT_SEC,
        read_timeout_sec=settings.LLM_READ_TIMEOUT_SEC,
    )


@lru_cache(maxsize=1)
def get_pdf_orchestrator() -> PdfTaskOrchestrator:
    worker = PdfWorkerClient(
        settings.pdf_translate_url,
        submit_timeout_sec=settings.PDF_SUBMIT_TIMEOUT_SEC,
        status_timeout_sec=settings.PDF_STATUS_TIMEOUT_SEC,
        download_timeout_sec=settings.PDF_DOWNLOAD_TIMEOUT_SEC,
        cancel_timeout_sec=settings.PDF_CANCEL_TIMEOUT_SEC,
    )
    return PdfTaskOrchestrator(
        worker,
        get_artifact_store(),
        translation_log=get_translation_log(),
        save_translations=settings.SAVE_TRANSLATIONS,
        service=settings.PDF_SERVICE,
        thread=settings.PDF_THREAD,
    )
