"""应用配置"""
from pydantic_settings import BaseSettings
from pydantic import model_validator
from typing import List
from pathlib import Path


_BACKEND_ROOT = Path(__file__).resolve().parents[1]


class Settings(BaseSettings):
    """应用配置类"""

    # 应用信息
    APP_NAME: str = "LocaLingo"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False

    # CORS配置
    CORS_ORIGINS: str = "http://localhost:4567,http://localhost:3000"

    # LLM（OpenAI 兼容的流式 chat completions）
    LLM_ENDPOINT: str = "http://host.docker.internal:1234"
    LLM_MODEL: str = "plamo-2-translate"
    # 部分模型变体在正文中输出该标记表示翻译失败；默认不检测
    LLM_FAILURE_SENTINEL: str = ""
    LLM_CONNECT_TIMEOUT_SEC: float = 10.0
    LLM_READ_TIMEOUT_SEC: float = 300.0

    # PDF 翻译 worker（PDFMathTranslate）
    PDF_TRANSLATE_ENDPOINT: str = "http://pdf2zh:11007"
    PDF_SERVICE: str = "openailiked"
    PDF_THREAD: int = 10
    PDF_SUBMIT_TIMEOUT_SEC: float = 10.0
    PDF_STATUS_TIMEOUT_SEC: float = 5.0
    PDF_DOWNLOAD_TIMEOUT_SEC: float = 30.0
    PDF_CANCEL_TIMEOUT_SEC: float = 10.0

    # 数据目录
    DATA_DIR: str = str(_BACKEND_ROOT / "data")
    TRANSLATIONS_FILE: str = str(_BACKEND_ROOT / "data" / "translations.json")
    PDF_DIR: str = str(_BACKEND_ROOT / "data" / "pdfs")
    PUBLIC_DIR: str = str(_BACKEND_ROOT / "public")

    # 是否记录翻译日志（默认开启）
    SAVE_TRANSLATIONS: bool = True

    @model_validator(mode="before")
    @classmethod
    def treat_empty_env_as_unset(cls, data):
        """
        将空字符串环境变量按“未配置”处理。
        这样 .env 中留空不会覆盖默认值，也避免复杂类型解析报错。
        """
        if not isinstance(data, dict):
            return data

        cleaned = dict(data)
        for field_name, field in cls.model_fields.items():
            default = field.default

            # 仅当字段本身有可用默认值时，空字符串才回退到默认值
            if default in (None, ""):
                continue

            keys = {field_name}
            alias = field.validation_alias
            if isinstance(alias, str):
                keys.add(alias)

            for key in keys:
                if cleaned.get(key) == "":
                    cleaned.pop(key, None)

        return cleaned

    @property
    def cors_origins_list(self) -> List[str]:
        """获取CORS允许的源列表"""
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]

    @property
    def llm_chat_url(self) -> str:
        return self.LLM_ENDPOINT.rstrip("/") + "/v1/chat/completions"

    @property
    def pdf_translate_url(self) -> str:
        return self.PDF_TRANSLATE_ENDPOINT.rstrip("/") + "/v1/translate"

    class Config:
        env_file = (".env", "backend/.env")
        case_sensitive = True
        extra = "ignore"


# 全局配置实例
settings = Settings()
