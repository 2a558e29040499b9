import json
import os
import threading
from urllib.parse import urlparse

from dotenv import load_dotenv
from pydantic import BaseModel, Field


load_dotenv()

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


def _parse_bool(name: str, raw: str) -> bool:
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ValueError(f"{name} must be a boolean value")


def _parse_allowed_origins(raw_allowed_origins: str) -> list[str]:
    # Support both CSV format and JSON array format
    allowed_origins: list[str] = []
    if raw_allowed_origins.startswith("["):
        try:
            parsed_list = json.loads(raw_allowed_origins)
        except json.JSONDecodeError as exc:
            raise ValueError(f"ALLOWED_ORIGINS JSON is malformed: {exc}") from exc
        if not isinstance(parsed_list, list):
            raise ValueError("ALLOWED_ORIGINS JSON must be an array")
        allowed_origins = [
            origin.strip() for origin in parsed_list if isinstance(origin, str) and origin.strip()
        ]
    else:
        allowed_origins = [
            origin.strip() for origin in raw_allowed_origins.split(",") if origin.strip()
        ]

    if not allowed_origins:
        raise ValueError("ALLOWED_ORIGINS must contain at least one origin")

    if "*" in allowed_origins:
        raise ValueError(
            "ALLOWED_ORIGINS cannot contain '*' when credentialed requests are used"
        )

    for origin in allowed_origins:
        parsed = urlparse(origin)
        if parsed.scheme not in {"http", "https"} or not parsed.netloc:
            raise ValueError(
                "ALLOWED_ORIGINS must contain valid http/https origins with host"
            )
    return allowed_origins


class Settings(BaseModel):
    app_name: str = Field(default="Secure Admin API")
    debug: bool = Field(default=False)
    environment: str = Field(default="development")
    database_url: str = Field(default="")
    allowed_origins: list[str] = Field(default_factory=list)
    db_pool_size: int = Field(default=5)
    db_max_overflow: int = Field(default=10)
    db_pool_recycle: int = Field(default=1800)
    db_pool_pre_ping: bool = Field(default=True)

    identity_jwt_key: str | None = Field(default=None)
    identity_jwt_algorithm: str = Field(default="RS256")
    identity_jwt_issuer: str | None = Field(default=None)
    identity_jwt_audience: str | None = Field(default=None)

    upload_dir: str = Field(default="uploads")
    max_upload_bytes: int = Field(default=10 * 1024 * 1024)

    cloudinary_url: str | None = Field(default=None)
    cloudinary_cloud_name: str | None = Field(default=None)
    cloudinary_api_key: str | None = Field(default=None)
    cloudinary_api_secret: str | None = Field(default=None)
    cloudinary_folder: str = Field(default="secure-web-app")

    seed_roles_on_startup: bool = Field(default=False)

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def has_cloudinary_credentials(self) -> bool:
        if self.cloudinary_url:
            return True
        return bool(
            self.cloudinary_cloud_name
            and self.cloudinary_api_key
            and self.cloudinary_api_secret
        )

    @property
    def use_cloud_storage(self) -> bool:
        return self.is_production and self.has_cloudinary_credentials

    @classmethod
    def from_env(cls) -> "Settings":
        identity_jwt_key = os.getenv("IDENTITY_JWT_KEY", "").strip()
        if not identity_jwt_key:
            raise ValueError("IDENTITY_JWT_KEY environment variable must be set")
        # PEM keys are often stored on a single line with escaped newlines
        identity_jwt_key = identity_jwt_key.replace("\\n", "\n")

        raw_allowed_origins = os.getenv("ALLOWED_ORIGINS", "").strip()
        if not raw_allowed_origins:
            raise ValueError("ALLOWED_ORIGINS environment variable must be set")
        allowed_origins = _parse_allowed_origins(raw_allowed_origins)

        database_url = os.getenv("DATABASE_URL", "").strip()
        if not database_url:
            raise ValueError("DATABASE_URL environment variable must be set")

        parsed_db = urlparse(database_url)
        if parsed_db.scheme != "postgresql+asyncpg":
            raise ValueError("DATABASE_URL must start with 'postgresql+asyncpg://'")
        if not parsed_db.hostname:
            raise ValueError("DATABASE_URL must include hostname")

        db_pool_size = int(os.getenv("DB_POOL_SIZE", cls.model_fields["db_pool_size"].default))
        if db_pool_size <= 0:
            raise ValueError("DB_POOL_SIZE must be greater than 0")

        db_max_overflow = int(
            os.getenv("DB_MAX_OVERFLOW", cls.model_fields["db_max_overflow"].default)
        )
        if db_max_overflow < 0:
            raise ValueError("DB_MAX_OVERFLOW must be greater than or equal to 0")

        db_pool_recycle = int(
            os.getenv("DB_POOL_RECYCLE", cls.model_fields["db_pool_recycle"].default)
        )
        if db_pool_recycle <= 0:
            raise ValueError("DB_POOL_RECYCLE must be greater than 0")

        db_pool_pre_ping = _parse_bool(
            "DB_POOL_PRE_PING",
            os.getenv("DB_POOL_PRE_PING", str(cls.model_fields["db_pool_pre_ping"].default)),
        )

        max_upload_bytes = int(
            os.getenv("MAX_UPLOAD_BYTES", cls.model_fields["max_upload_bytes"].default)
        )
        if max_upload_bytes <= 0:
            raise ValueError("MAX_UPLOAD_BYTES must be greater than 0")

        environment = os.getenv(
            "ENVIRONMENT", cls.model_fields["environment"].default
        ).strip().lower()

        return cls(
            app_name=os.getenv("APP_NAME", cls.model_fields["app_name"].default),
            debug=os.getenv("DEBUG", "false").lower() == "true",
            environment=environment,
            database_url=database_url,
            allowed_origins=allowed_origins,
            db_pool_size=db_pool_size,
            db_max_overflow=db_max_overflow,
            db_pool_recycle=db_pool_recycle,
            db_pool_pre_ping=db_pool_pre_ping,
            identity_jwt_key=identity_jwt_key,
            identity_jwt_algorithm=os.getenv(
                "IDENTITY_JWT_ALGORITHM",
                cls.model_fields["identity_jwt_algorithm"].default,
            ),
            identity_jwt_issuer=os.getenv("IDENTITY_JWT_ISSUER") or None,
            identity_jwt_audience=os.getenv("IDENTITY_JWT_AUDIENCE") or None,
            upload_dir=os.getenv("UPLOAD_DIR", cls.model_fields["upload_dir"].default),
            max_upload_bytes=max_upload_bytes,
            cloudinary_url=os.getenv("CLOUDINARY_URL") or None,
            cloudinary_cloud_name=os.getenv("CLOUDINARY_CLOUD_NAME") or None,
            cloudinary_api_key=os.getenv("CLOUDINARY_API_KEY") or None,
            cloudinary_api_secret=os.getenv("CLOUDINARY_API_SECRET") or None,
            cloudinary_folder=os.getenv(
                "CLOUDINARY_FOLDER", cls.model_fields["cloudinary_folder"].default
            ),
            seed_roles_on_startup=_parse_bool(
                "SEED_ROLES_ON_STARTUP", os.getenv("SEED_ROLES_ON_STARTUP", "false")
            ),
        )


# Settings are built on first access so the package can be imported
# without a fully populated environment.
_settings_instance: Settings | None = None
_settings_lock = threading.Lock()


def get_settings() -> Settings:
    """Get settings instance, creating it on first access.

    Uses double-checked locking so concurrent first accesses build a single
    instance.

    Raises:
        ValueError: If required environment variables are missing or invalid
    """
    global _settings_instance

    if _settings_instance is not None:
        return _settings_instance

    with _settings_lock:
        if _settings_instance is None:
            _settings_instance = Settings.from_env()

    return _settings_instance


class _SettingsProxy:
    """Proxy to defer settings creation until first attribute access."""

    def __getattr__(self, name: str):
        return getattr(get_settings(), name)


settings = _SettingsProxy()  # type: ignore[assignment]
