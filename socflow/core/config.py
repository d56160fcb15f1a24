"""
SocFlow Configuration
---------------------
Centralized configuration for the Analytics Backend connection and the
orchestration workflows. Loads from environment variables and YAML files.

Upload size limits and request timeouts are policy constants in
``socflow.core.types`` and are not read from configuration.
"""

import os
import logging
from typing import Optional
from pydantic import BaseModel, Field

from socflow.core.types import NAVIGATION_DELAY_SECONDS

logger = logging.getLogger("SocFlow.Config")

DEFAULT_API_URL = "http://localhost:8000"


def _parse_positive_float_env(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = float(raw)
        if value <= 0:
            raise ValueError
        return value
    except ValueError:
        logger.warning(
            "Invalid %s value '%s'; expected positive float. Using %s.",
            name,
            raw,
            default,
        )
        return default


def _parse_positive_int_env(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
        if value < 1:
            raise ValueError
        return value
    except ValueError:
        logger.warning(
            "Invalid %s value '%s'; expected positive integer. Using %d.",
            name,
            raw,
            default,
        )
        return default


class BackendConfig(BaseModel):
    """Analytics Backend connection."""
    base_url: str = DEFAULT_API_URL
    api_key: Optional[str] = Field(default=None, repr=False)
    request_timeout: float = 30.0


class WorkflowConfig(BaseModel):
    """Orchestration workflow tuning."""
    bulk_concurrency: int = 1  # 1 = sequential
    navigation_delay_seconds: float = NAVIGATION_DELAY_SECONDS


class SocFlowConfig(BaseModel):
    """Root configuration for SocFlow."""
    backend: BackendConfig = Field(default_factory=BackendConfig)
    workflow: WorkflowConfig = Field(default_factory=WorkflowConfig)
    log_level: str = "info"

    @classmethod
    def from_env(cls) -> "SocFlowConfig":
        """
        Load configuration from environment variables.

        - SOCFLOW_API_URL: Analytics Backend base URL
        - SOCFLOW_API_KEY: API credential
        - SOCFLOW_REQUEST_TIMEOUT: Timeout for non-policy requests (seconds)
        - SOCFLOW_BULK_CONCURRENCY: Parallel status updates (1 = sequential)
        - SOCFLOW_NAVIGATION_DELAY: Delay before post-detection navigation
        - SOCFLOW_LOG_LEVEL: Logging level name
        """
        return cls(
            backend=BackendConfig(
                base_url=os.environ.get("SOCFLOW_API_URL", DEFAULT_API_URL),
                api_key=os.environ.get("SOCFLOW_API_KEY") or None,
                request_timeout=_parse_positive_float_env("SOCFLOW_REQUEST_TIMEOUT", 30.0),
            ),
            workflow=WorkflowConfig(
                bulk_concurrency=_parse_positive_int_env("SOCFLOW_BULK_CONCURRENCY", 1),
                navigation_delay_seconds=_parse_positive_float_env(
                    "SOCFLOW_NAVIGATION_DELAY", NAVIGATION_DELAY_SECONDS
                ),
            ),
            log_level=os.environ.get("SOCFLOW_LOG_LEVEL", "info"),
        )

    @classmethod
    def from_yaml(cls, path: str) -> "SocFlowConfig":
        """Load configuration from a YAML file."""
        import yaml

        try:
            with open(path, "r") as f:
                data = yaml.safe_load(f) or {}
        except FileNotFoundError:
            logger.warning("Config file not found: %s; using environment", path)
            return cls.from_env()
        return cls(**data)
