from __future__ import annotations

import os
from dataclasses import dataclass

DEFAULT_OPENAI_API_BASE = "https://api.openai.com/v1"
DEFAULT_FUNCTIONS_BASE_URL = "http://localhost:8000/functions/v1/"


class ConfigError(RuntimeError):
    pass


def _req(name: str) -> str:
    v = os.getenv(name)
    if not v:
        raise ConfigError(f"Missing required env var: {name}")
    return v


@dataclass(frozen=True)
class HubConfig:
    stage: str
    # RDS Data API settings; the secret grants the privileged role that
    # bypasses row-level security.
    db_resource_arn: str | None
    db_secret_arn: str | None
    db_name: str | None
    # Model catalog settings
    openai_api_key: str | None  # Direct key (for local dev)
    openai_secret_arn: str | None  # Secrets Manager ARN (for Lambda)
    openai_api_base: str
    model_filter: str
    # Deployment manifest
    functions_base_url: str

    @property
    def has_database(self) -> bool:
        return bool(self.db_resource_arn and self.db_secret_arn and self.db_name)


def load_config(*, require_db: bool = True) -> HubConfig:
    """Read configuration from the environment.

    Functions that never touch the datastore (models, health, deployment-check)
    pass ``require_db=False`` so they can run without database settings.
    """
    if require_db:
        db_resource_arn: str | None = _req("DB_RESOURCE_ARN")
        db_secret_arn: str | None = _req("DB_SECRET_ARN")
        db_name: str | None = _req("DB_NAME")
    else:
        db_resource_arn = os.getenv("DB_RESOURCE_ARN")
        db_secret_arn = os.getenv("DB_SECRET_ARN")
        db_name = os.getenv("DB_NAME")

    base_url = os.getenv("FUNCTIONS_BASE_URL") or DEFAULT_FUNCTIONS_BASE_URL
    if not base_url.endswith("/"):
        base_url += "/"

    return HubConfig(
        stage=os.getenv("STAGE", "dev"),
        db_resource_arn=db_resource_arn,
        db_secret_arn=db_secret_arn,
        db_name=db_name,
        openai_api_key=os.getenv("OPENAI_API_KEY"),
        openai_secret_arn=os.getenv("OPENAI_SECRET_ARN"),
        openai_api_base=(os.getenv("OPENAI_API_BASE") or DEFAULT_OPENAI_API_BASE).rstrip("/"),
        model_filter=os.getenv("MODEL_FILTER", "gpt"),
        functions_base_url=base_url,
    )
