# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/edgegap_orchestrator

"""
Configuration management for the Edgegap deployment orchestrator.
"""

from functools import lru_cache
from typing import List, Literal, Optional

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

ApiEnvironment = Literal["production", "staging"]


class Settings(BaseSettings):
    """
    Application configuration using environment variables.
    """

    model_config = SettingsConfigDict(
        env_prefix="EDGEGAP_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Platform
    environment: ApiEnvironment = Field(default="production", description="Which Edgegap API to talk to.")
    api_token: Optional[SecretStr] = Field(default=None, description="Edgegap API token (without 'token ' prefix).")
    source_name: str = Field(default="edgegap-orchestrator", description="Client marker sent as 'source'.")
    request_timeout_seconds: float = Field(default=30.0, description="Per-request HTTP timeout.")

    # Deployments
    poll_interval_seconds: float = Field(default=2.0, description="Delay between readiness polls.")
    ready_timeout_seconds: float = Field(default=60.0, description="Ceiling for awaiting READY status.")
    status_refresh_interval_seconds: float = Field(
        default=10.0, description="Interval hosts should use for periodic status refreshes."
    )
    default_version_tag: str = Field(default="latest", description="Version name / image tag used when none given.")
    req_cpu: int = Field(default=256, description="vCPU units requested for new app versions.")
    req_memory: int = Field(default=256, description="Memory (MB) requested for new app versions.")

    # Build & Push
    skip_artifact_build: bool = Field(default=False, description="Skip building the server binary.")
    skip_image_build: bool = Field(default=False, description="Skip building the container image.")
    artifact_build_command: List[str] = Field(
        default_factory=list, description="Command producing the deployable server build."
    )
    docker_executable: str = Field(default="docker", description="Container tool used for build/login/push.")
    registry_url: str = Field(default="", description="Container registry host.")
    image_repository: str = Field(default="", description="Image repository (project/name) inside the registry.")
    registry_username: str = Field(default="", description="Registry username.")
    registry_token: Optional[SecretStr] = Field(default=None, description="Registry token/password.")

    log_level: str = Field(default="INFO", description="Console log level.")

    @field_validator("api_token", "registry_token")
    @classmethod
    def validate_secrets(cls, v: Optional[SecretStr]) -> Optional[SecretStr]:
        """
        Secrets are optional, but when given they must not be empty.
        """
        if v is not None and not v.get_secret_value().strip():
            raise ValueError("Secret must not be empty when provided.")
        return v

    @field_validator(
        "poll_interval_seconds", "ready_timeout_seconds", "status_refresh_interval_seconds", "request_timeout_seconds"
    )
    @classmethod
    def validate_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("Intervals and timeouts must be positive.")
        return v


@lru_cache
def get_settings() -> Settings:
    """
    Returns a cached instance of the Settings class.
    """
    return Settings()
