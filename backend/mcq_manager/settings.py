from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field

class Settings(BaseSettings):
	# Database
	database_url: str | None = Field(default=None, validation_alias="DATABASE_URL")

	gemini_api_key: str | None = Field(default=None, validation_alias="GEMINI_API_KEY")
	# Provider can be "vertex" (Vertex AI Express) or "ai_studio" (Generative Language API)
	gemini_provider: str = Field(default="ai_studio", validation_alias="GEMINI_PROVIDER")
	gemini_model: str = Field(default="gemini-2.5-flash", validation_alias="GEMINI_MODEL")
	gemini_timeout_seconds: float = Field(default=120.0, validation_alias="GEMINI_TIMEOUT_SECONDS")
	# Vertex configuration
	vertex_region: str = Field(default="us-central1", validation_alias="GEMINI_VERTEX_REGION")
	vertex_project: str | None = Field(default=None, validation_alias="GEMINI_VERTEX_PROJECT")

	# OpenRouter fallback configuration (optional)
	openrouter_api_key: str | None = Field(default=None, validation_alias="OPENROUTER_API_KEY")
	openrouter_model: str = Field(default="openai/gpt-4o-mini", validation_alias="OPENROUTER_MODEL")
	openrouter_base_url: str = Field(default="https://openrouter.ai/api/v1/chat/completions", validation_alias="OPENROUTER_BASE_URL")
	openrouter_referer: str = Field(default="https://localhost", validation_alias="OPENROUTER_HTTP_REFERER")
	openrouter_title: str = Field(default="MCQ Manager", validation_alias="OPENROUTER_TITLE")

	# Generated content must parse as JSON of the expected shape; bounded retries
	generation_max_attempts: int = Field(default=3, validation_alias="GENERATION_MAX_ATTEMPTS")
	generation_retry_delay_seconds: float = Field(default=1.0, validation_alias="GENERATION_RETRY_DELAY_SECONDS")

	# Twilio Verify (phone OTP)
	twilio_account_sid: str | None = Field(default=None, validation_alias="TWILIO_ACCOUNT_SID")
	twilio_auth_token: str | None = Field(default=None, validation_alias="TWILIO_AUTH_TOKEN")
	twilio_verify_service_sid: str | None = Field(default=None, validation_alias="TWILIO_VERIFY_SERVICE_SID")
	twilio_base_url: str = Field(default="https://verify.twilio.com/v2", validation_alias="TWILIO_BASE_URL")
	sms_default_country_code: str = Field(default="+91", validation_alias="SMS_DEFAULT_COUNTRY_CODE")
	sms_timeout_seconds: float = Field(default=15.0, validation_alias="SMS_TIMEOUT_SECONDS")

	leaderboard_size: int = Field(default=10, validation_alias="LEADERBOARD_SIZE")
	mcqs_per_upload: int = Field(default=10, validation_alias="MCQS_PER_UPLOAD")

	log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")
	cors_origins: str = Field(default="*", validation_alias="CORS_ORIGINS")

	# pydantic-settings v2 style config
	model_config = SettingsConfigDict(env_file=".env", extra="ignore")

	@property
	def cors_origin_list(self) -> list[str]:
		return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

settings = Settings()
