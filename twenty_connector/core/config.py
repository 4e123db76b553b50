from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """FastAPI 기본 설정과 Twenty CRM 연결 환경 변수를 관리"""

    api_prefix: str = "/api"
    app_name: str = "Twenty Connector"
    log_level: str = "INFO"

    # Twenty CRM (요청 헤더가 없을 때 사용하는 기본 자격 증명)
    twenty_domain: Optional[str] = None
    twenty_api_key: Optional[str] = None
    twenty_timeout_seconds: float = 30.0

    # 검색/목록 조회 기본 개수
    twenty_search_limit: int = 50
    twenty_options_limit: int = 100

    model_config = SettingsConfigDict(
        env_prefix="",  # 프리픽스 없음 - TWENTY_* 직접 사용
        env_file=(".env", ".env.local"),
        env_file_encoding="utf-8",
    )

    @field_validator("twenty_domain", mode="before")
    @classmethod
    def normalize_domain(cls, value):
        if value is None:
            return None
        if isinstance(value, str):
            value = value.strip().rstrip("/")
            if not value:
                return None
            if not value.startswith(("http://", "https://")):
                value = f"https://{value}"
        return value


@lru_cache
def get_settings() -> Settings:
    return Settings()
