from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class DocMirrorSettings(BaseSettings):
    """Unified configuration for docmirror.

    Environment variables are prefixed with DOCMIRROR_.
    """

    model_config = SettingsConfigDict(env_prefix="DOCMIRROR_", extra="ignore")

    # --- Core ---
    log_level: str = Field(default="INFO", description="Python logging level")

    # --- Dgraph ---
    dgraph_addr: str = Field(default="localhost:9080", description="Alpha gRPC endpoint")
    dgraph_timeout: float | None = Field(default=30.0, description="Per-call timeout in seconds")

    # --- Synchronizer ---
    lock_stripes: int = Field(default=64, ge=1, description="Per-hash store_document lock stripes")

    # --- HTTP ---
    bind_host: str = "0.0.0.0"
    bind_port: int = 8090
    api_key: str | None = Field(default=None, description="If set, require X-API-Key")


settings = DocMirrorSettings()
