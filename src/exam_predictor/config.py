"""Runtime configuration objects."""

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from exam_predictor.pipeline.models import ModelBackendConfig


class AppConfig(BaseSettings):
    """Application settings loaded from env variables and .env files."""

    model_config = SettingsConfigDict(
        env_prefix="EP_",
        env_file=".env",
        extra="ignore",
        populate_by_name=True,
    )

    openrouter_api_key: str = Field(
        default="",
        validation_alias=AliasChoices("EP_OPENROUTER_API_KEY", "OPENROUTER_API_KEY"),
    )
    base_url: str = Field(default="https://openrouter.ai/api")
    model: str = Field(default="google/gemini-2.5-pro-exp-03-25:free")
    max_tokens: int = Field(default=1500)
    temperature: float = Field(default=0.5)
    timeout: float = Field(default=120.0)
    referer: str = Field(default="https://exam-predictor.app")
    app_title: str = Field(default="Exam Question Predictor")
    max_content_chars: int = Field(default=8000)
    max_retries: int = Field(default=2)
    retry_base_delay: float = Field(default=1.0)
    duckdb_path: str = Field(default="data/exam_predictor.duckdb")

    def backend_config(self) -> ModelBackendConfig:
        """Narrow the settings down to what the model client needs."""
        return ModelBackendConfig(
            base_url=self.base_url,
            timeout=self.timeout,
            api_key=self.openrouter_api_key,
            model=self.model,
            max_tokens=self.max_tokens,
            temperature=self.temperature,
            referer=self.referer,
            app_title=self.app_title,
        )
