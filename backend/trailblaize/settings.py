"""Settings for the Trailblaize API with observability configuration."""

from __future__ import annotations

from typing import Any, Optional, Tuple, Union

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _env_field(default, *env_names: str):
	if env_names:
		alias = AliasChoices(*env_names) if len(env_names) > 1 else env_names[0]
		return Field(default=default, validation_alias=alias)
	return Field(default=default)


def _split_csv(value: Any) -> Tuple[str, ...]:
	if value in (None, ""):
		return ()
	if isinstance(value, str):
		return tuple(part.strip() for part in value.split(",") if part.strip())
	if isinstance(value, (list, tuple, set)):
		return tuple(str(item).strip() for item in value if str(item).strip())
	return ()


class Settings(BaseSettings):
	environment: str = _env_field("production", "ENV", "APP_ENV", "ENVIRONMENT")

	# Storage
	store_backend: str = _env_field("postgres", "STORE_BACKEND")
	postgres_url: Optional[str] = _env_field(None, "DATABASE_URL", "POSTGRES_URL")
	postgres_min_pool_size: int = _env_field(1, "POSTGRES_MIN_POOL_SIZE")
	postgres_max_pool_size: int = _env_field(10, "POSTGRES_MAX_POOL_SIZE")
	postgres_ssl: bool = _env_field(False, "POSTGRES_SSL")
	redis_url: str = _env_field("redis://localhost:6379/0", "REDIS_URL")

	# Viewer resolution
	jwt_secret: Optional[str] = _env_field(None, "JWT_SECRET", "SUPABASE_JWT_SECRET")
	jwt_audience: str = _env_field("authenticated", "JWT_AUDIENCE")
	session_cookie_name: str = _env_field("sb-access-token", "SESSION_COOKIE_NAME")
	admin_roles: Union[str, Tuple[str, ...]] = _env_field(("admin",), "ADMIN_ROLES")

	# Alumni directory
	alumni_default_page_size: int = _env_field(100, "ALUMNI_DEFAULT_PAGE_SIZE")
	alumni_max_page_size: int = _env_field(1000, "ALUMNI_MAX_PAGE_SIZE")
	alumni_per_minute: int = _env_field(120, "ALUMNI_PER_MINUTE")
	# Graduation years at or below this value fall in the "older" bucket
	alumni_older_cutoff_year: int = _env_field(2019, "ALUMNI_OLDER_CUTOFF_YEAR")

	# Profile drafts
	profile_draft_debounce_seconds: float = _env_field(1.0, "PROFILE_DRAFT_DEBOUNCE_SECONDS")
	profile_draft_ttl_seconds: int = _env_field(86400, "PROFILE_DRAFT_TTL_SECONDS")

	cors_allow_origins: Any = _env_field((), "CORS_ALLOW_ORIGINS")

	# Observability
	obs_enabled: bool = _env_field(True, "OBS_ENABLED")
	obs_metrics_public: bool = _env_field(False, "OBS_METRICS_PUBLIC")
	obs_log_level: str = _env_field("INFO", "LOG_LEVEL")
	obs_log_sampling_rate_info: float = _env_field(1.0, "LOG_SAMPLING_RATE_INFO")
	obs_admin_token: Optional[str] = _env_field(None, "OBS_ADMIN_TOKEN")
	service_name: str = _env_field("trailblaize-api", "SERVICE_NAME")
	git_commit: str = _env_field("unknown", "GIT_COMMIT", "COMMIT_SHA", "SOURCE_VERSION")

	model_config = SettingsConfigDict(
		env_prefix="",
		env_file=".env",
		case_sensitive=False,
		extra="ignore",
	)

	@field_validator("admin_roles", mode="before")
	def _split_admin_roles(cls, value):  # type: ignore[override]
		return _split_csv(value)

	@field_validator("cors_allow_origins", mode="before")
	def _split_cors(cls, value):  # type: ignore[override]
		return _split_csv(value)

	@field_validator("obs_log_level", mode="after")
	def _normalise_level(cls, value: str) -> str:  # type: ignore[override]
		return value.upper()

	# Environment helpers
	def is_dev(self) -> bool:
		return self.environment.lower() in ("dev", "development")

	def uses_memory_store(self) -> bool:
		return self.store_backend.lower() == "memory"

	def missing_configuration(self) -> dict[str, bool]:
		"""Report which required secrets are present, keyed for the diagnostic payload."""
		return {
			"hasDatabaseUrl": bool(self.postgres_url) or self.uses_memory_store(),
			"hasJwtSecret": bool(self.jwt_secret),
		}


settings = Settings()


def is_true(value: str | bool | None) -> bool:
	if isinstance(value, bool):
		return value
	if value is None:
		return False
	return str(value).strip().lower() in {"1", "true", "yes", "on"}
