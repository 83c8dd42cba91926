from typing import Annotated

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic_settings.sources.types import NoDecode

from .models.review import PracticeDirection


_KNOWN_LOG_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    環境変数から読み込まれるアプリ設定クラス。
    - environment: 実行環境（development/staging/production など）
    - practice_session_limit: 1 回の練習セッションで出題する最大枚数
    - default_direction: 練習方向の既定値
    """

    environment: str = Field(
        default="development",
        description="Runtime environment / 実行環境",
    )
    api_host: str = Field(
        default="127.0.0.1",
        description="Bind address for the API server / API サーバの待受アドレス",
    )
    api_port: int = Field(
        default=8000,
        ge=1,
        le=65535,
        description="Bind port for the API server / API サーバの待受ポート",
    )
    log_level: str = Field(
        default="INFO",
        description="Root log level / ルートロガーのログレベル",
    )
    allowed_cors_origins: Annotated[tuple[str, ...], NoDecode] = Field(
        default=(),
        description=(
            "Comma separated list of allowed CORS origins / "
            "CORS を許可するオリジン（カンマ区切り）"
        ),
    )

    # --- 練習セッション ---
    practice_session_limit: int = Field(
        default=0,
        ge=0,
        description=(
            "Max cards per practice session, 0 means unlimited / "
            "練習セッションあたりの最大出題数（0 は無制限）"
        ),
    )
    default_direction: PracticeDirection = Field(
        default=PracticeDirection.translate_to,
        description=(
            "Practice direction used when the client omits it / "
            "クライアントが省略した場合の練習方向"
        ),
    )

    # --- Strict mode ---
    strict_mode: bool = Field(
        default=True,
        description="Fail fast on missing/invalid configuration (disable only for tests)",
    )

    # Pydantic v2 settings config
    # - env_file: .env を読み込む
    # - extra: .env に存在する未使用キーを無視
    # - case_sensitive: 環境変数キーの大小文字を区別しない
    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
        case_sensitive=False,
    )

    @field_validator("allowed_cors_origins", mode="before")
    @classmethod
    def _parse_origins(cls, value: object) -> tuple[str, ...]:
        if value is None:
            return ()
        if isinstance(value, str):
            return tuple(origin.strip() for origin in value.split(",") if origin.strip())
        return tuple(str(origin).strip() for origin in value if str(origin).strip())  # type: ignore[union-attr]

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalize_log_level(cls, value: object) -> str:
        return str(value or "INFO").strip().upper()

    @model_validator(mode="after")
    def _enforce_strict_mode(self) -> "Settings":
        """Reject unknown log levels when STRICT_MODE is on.

        非 strict 時は INFO にフォールバックする。
        """
        if self.log_level in _KNOWN_LOG_LEVELS:
            return self
        if self.strict_mode:
            raise ValueError(
                f"LOG_LEVEL must be one of {sorted(_KNOWN_LOG_LEVELS)} when STRICT_MODE=true"
            )
        self.log_level = "INFO"
        return self


settings = Settings()
