from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field

class Settings(BaseSettings):
	gemini_api_key: str | None = Field(default=None, validation_alias="GEMINI_API_KEY")
	# Provider can be "vertex" (Vertex AI Express) or "ai_studio" (Generative Language API)
	gemini_provider: str = Field(default="ai_studio", validation_alias="GEMINI_PROVIDER")
	gemini_model: str = Field(default="gemini-2.5-flash", validation_alias="GEMINI_MODEL")
	gemini_timeout_seconds: float = Field(default=60.0, validation_alias="GEMINI_TIMEOUT_SECONDS")
	vertex_region: str = Field(default="us-central1", validation_alias="GEMINI_VERTEX_REGION")
	vertex_project: str | None = Field(default=None, validation_alias="GEMINI_VERTEX_PROJECT")

	# OpenRouter fallback for plain-text generations (lessons)
	openrouter_api_key: str | None = Field(default=None, validation_alias="OPENROUTER_API_KEY")
	openrouter_model: str = Field(default="x-ai/grok-4-fast:free", validation_alias="OPENROUTER_MODEL")
	openrouter_base_url: str = Field(default="https://openrouter.ai/api/v1/chat/completions", validation_alias="OPENROUTER_BASE_URL")
	openrouter_referer: str = Field(default="https://localhost", validation_alias="OPENROUTER_HTTP_REFERER")
	openrouter_title: str = Field(default="ScholarPrep", validation_alias="OPENROUTER_TITLE")

	# Study plan policy
	roadmap_weeks: int = Field(default=8, validation_alias="ROADMAP_WEEKS")
	exam_question_count: int = Field(default=5, ge=1, validation_alias="EXAM_QUESTION_COUNT")
	exam_difficulty: int = Field(default=6, ge=1, le=10, validation_alias="EXAM_DIFFICULTY")
	initial_mastery_score: int = Field(default=70, ge=0, le=100, validation_alias="INITIAL_MASTERY_SCORE")
	initial_completion_percentage: int = Field(default=10, ge=0, le=100, validation_alias="INITIAL_COMPLETION_PERCENTAGE")

	# Auth
	jwt_secret_key: str = Field(default="change-me", validation_alias="JWT_SECRET_KEY")
	jwt_algorithm: str = Field(default="HS256", validation_alias="JWT_ALGORITHM")
	access_token_expire_minutes: int = Field(default=120, validation_alias="ACCESS_TOKEN_EXPIRE_MINUTES")
	seed_username: str | None = Field(default=None, validation_alias="SEED_USERNAME")
	seed_password_plain: str | None = Field(default=None, validation_alias="SEED_PASSWORD")

	database_url: str | None = Field(default=None, validation_alias="DATABASE_URL")
	# Study records untouched for this many days are purged
	record_retention_days: int = Field(default=7, validation_alias="RECORD_RETENTION_DAYS")

	log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")

	model_config = SettingsConfigDict(env_file=".env", extra="ignore")

settings = Settings()
