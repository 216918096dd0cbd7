"""Application configuration loaded from environment."""

from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_REGIONS = [
    "us-east-1",
    "us-east-2",
    "us-west-1",
    "us-west-2",
    "eu-central-1",
]
DEFAULT_OWNER_TAGS = ["ec2-manager-production", "aws-provisioner-v1-managed"]


class MissingPatternError(ValueError):
    """Raised when WORKERTYPE_PATTERN is not configured."""


class Settings(BaseSettings):
    """winstance-slayer settings from env vars."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Glob matched against the instance Name tag (required)
    workertype_pattern: str = ""
    # Presence flag: any non-empty value means dry run
    dry_run: str = ""

    # Presence flag; when unset, credentials are fetched from the secrets service
    aws_access_key: str = ""
    aws_access_key_id: str | None = None
    aws_secret_access_key: str | None = None

    regions: list[str] = DEFAULT_REGIONS
    owner_tags: list[str] = DEFAULT_OWNER_TAGS
    impaired_threshold_minutes: int = 10

    # Secrets service holding the AWS credential pair
    secrets_base_url: str = "http://taskcluster/secrets/v1"
    secret_path: str = "project/releng/winstance-slayer/aws-creds"
    secrets_timeout_seconds: float = 30.0

    termination_log_path: str = "termination-log.yml"

    @property
    def is_dry_run(self) -> bool:
        return bool(self.dry_run)

    def require_pattern(self) -> str:
        """Return the configured name pattern or raise MissingPatternError."""
        if not (self.workertype_pattern or "").strip():
            raise MissingPatternError("specify WORKERTYPE_PATTERN")
        return self.workertype_pattern


def get_settings() -> Settings:
    """Return loaded settings from environment (and .env if present)."""
    return Settings()
