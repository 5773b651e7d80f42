from __future__ import annotations
import os
from typing import List
from dotenv import load_dotenv
from pydantic import BaseModel

load_dotenv()

def _app_env() -> str:
    return os.getenv("APP_ENV", os.getenv("NODE_ENV", "development")).lower()

class Settings(BaseModel):
    app_host: str = os.getenv("APP_HOST", "0.0.0.0")
    app_port: int = int(os.getenv("PORT", "8080"))
    app_env: str = _app_env()
    frontend_dir: str = os.getenv("FRONTEND_DIR", "client/build")
    upload_dir: str = os.getenv("UPLOAD_DIR", "uploads")
    openai_api_key: str = os.getenv("OPENAI_API_KEY", "")
    openai_model: str = os.getenv("OPENAI_MODEL", "gpt-4o-2024-08-06")
    openai_max_tokens: int = int(os.getenv("OPENAI_MAX_TOKENS", "1000"))
    openai_image_detail: str = os.getenv("OPENAI_IMAGE_DETAIL", "high")
    openai_timeout_s: float = float(os.getenv("OPENAI_TIMEOUT_S", "120"))
    allowed_origins: str = os.getenv("ALLOWED_ORIGINS", "*")
    log_level: str = os.getenv("LOG_LEVEL", "INFO")

    @property
    def production(self) -> bool:
        return self.app_env == "production"

    @property
    def origins(self) -> List[str]:
        return [o.strip() for o in self.allowed_origins.split(",") if o.strip()]

settings = Settings()
