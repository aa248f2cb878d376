"""Pytest configuration: point settings at a throwaway data directory."""

import os
import tempfile
from pathlib import Path

import pytest

# Settings are read at import time, so the environment must be prepared first.
_TEST_DATA = Path(tempfile.mkdtemp(prefix="localingo-tests-"))
_DEFAULT_ENV = {
    "DATA_DIR": str(_TEST_DATA),
    "PDF_DIR": str(_TEST_DATA / "pdfs"),
    "TRANSLATIONS_FILE": str(_TEST_DATA / "translations.json"),
    "PUBLIC_DIR": str(_TEST_DATA / "public"),
    "LLM_ENDPOINT": "http://llm.test",
    "PDF_TRANSLATE_ENDPOINT": "http://pdf2zh.test",
}

for key, value in _DEFAULT_ENV.items():
    os.environ.setdefault(key, value)

from localingo import dependencies  # noqa: E402


@pytest.fixture(autouse=True)
def reset_singletons():
    """Each test gets fresh service singletons."""
    for factory in (
        dependencies.get_translation_log,
        dependencies.get_artifact_store,
        dependencies.get_text_relay,
        dependencies.get_pdf_orchestrator,
    ):
        factory.cache_clear()
    yield
