"""Nested pydantic-settings configuration for the application.

Every tunable of the engine (timeouts, quorum, decision bands, ledger
ratios) lives here; the engine itself hardcodes none of them.  Each group
reads its own ``QUORUM_<GROUP>_*`` env vars::

    export QUORUM_DISPATCH_QUORUM_THRESHOLD=0.75
    export QUORUM_LEDGER_WARNING_RATIO=0.85
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings


class DecisionBands(BaseModel):
    """Score bands mapping an aggregate score to a decision.

    ``score < decline_below`` declines, ``decline_below <= score < quote_at``
    accepts conditionally, ``score >= quote_at`` quotes.  Bounds are expressed
    on ``scale`` (100 for deal scores, 10 for portfolio health scores).
    """

    scale: float = Field(default=100.0, gt=0.0)
    decline_below: float = 40.0
    quote_at: float = 70.0


class DispatchConfig(BaseSettings):
    """Evaluator fan-out configuration.

    Env vars use ``QUORUM_DISPATCH_`` prefix.
    """

    model_config = {"env_prefix": "QUORUM_DISPATCH_"}

    per_evaluator_timeout: float = 5.0
    overall_timeout: float = 30.0
    quorum_threshold: float = 0.8
    max_concurrent: int = Field(default=16, ge=1)


class DecisionConfig(BaseSettings):
    """Decision band configuration per case type.

    Env vars use ``QUORUM_DECISION_`` prefix (nested values as JSON)::

        export QUORUM_DECISION_UNDERWRITING='{"scale": 100, "decline_below": 45, "quote_at": 75}'
    """

    model_config = {"env_prefix": "QUORUM_DECISION_"}

    underwriting: DecisionBands = DecisionBands()
    portfolio: DecisionBands = DecisionBands(scale=10.0, decline_below=4.0, quote_at=7.0)


class LedgerConfig(BaseSettings):
    """Exposure ledger and threshold monitor configuration.

    Env vars use ``QUORUM_LEDGER_`` prefix.
    """

    model_config = {"env_prefix": "QUORUM_LEDGER_"}

    warning_ratio: float = 0.9
    breach_ratio: float = 1.0
    categories_file: Optional[Path] = None
    commit_timeout: float = 2.0


class RegistryConfig(BaseSettings):
    """Evaluator registry configuration.

    Env vars use ``QUORUM_REGISTRY_`` prefix.
    """

    model_config = {"env_prefix": "QUORUM_REGISTRY_"}

    registry_file: Optional[Path] = None
    auto_discover: bool = True


class ReferenceConfig(BaseSettings):
    """Reference-data store configuration (guidelines, precedents).

    Env vars use ``QUORUM_REFERENCE_`` prefix.  When a file is not set the
    store falls back to the seed data shipped with each domain.
    """

    model_config = {"env_prefix": "QUORUM_REFERENCE_"}

    guidelines_file: Optional[Path] = None
    precedents_file: Optional[Path] = None


class ConsultationConfig(BaseSettings):
    """Free-form consultation assistant configuration.

    Env vars use ``QUORUM_CONSULTATION_`` prefix::

        export QUORUM_CONSULTATION_ENABLED=true
        export QUORUM_CONSULTATION_MODEL=anthropic/claude-sonnet-4-20250514
    """

    model_config = {"env_prefix": "QUORUM_CONSULTATION_"}

    enabled: bool = False
    model: str = "openai/gpt-4o-mini"
    base_url: str = ""
    api_key: str = ""
    temperature: float = 0.2
    max_tokens: int = 800
    timeout: float = 30.0


class ObservabilityConfig(BaseSettings):
    """Observability configuration.

    Env vars use ``QUORUM_OBSERVABILITY_`` prefix.
    """

    model_config = {"env_prefix": "QUORUM_OBSERVABILITY_"}

    service_name: str = "quorum-ai"
    log_level: str = "INFO"


class APIConfig(BaseSettings):
    """HTTP API configuration.

    Env vars use ``QUORUM_API_`` prefix.
    """

    model_config = {"env_prefix": "QUORUM_API_"}

    title: str = "Quorum AI"
    description: str = "Multi-perspective decision synthesis for underwriting and portfolios"
    host: str = "0.0.0.0"
    port: int = 8080


class AppSettings(BaseSettings):
    """Top-level application settings aggregating all sub-configs.

    Each sub-config reads its own ``QUORUM_<GROUP>_*`` env vars when the
    settings object is built, not when this module is imported.
    """

    dispatch: DispatchConfig = Field(default_factory=DispatchConfig)
    decision: DecisionConfig = Field(default_factory=DecisionConfig)
    ledger: LedgerConfig = Field(default_factory=LedgerConfig)
    registry: RegistryConfig = Field(default_factory=RegistryConfig)
    reference: ReferenceConfig = Field(default_factory=ReferenceConfig)
    consultation: ConsultationConfig = Field(default_factory=ConsultationConfig)
    observability: ObservabilityConfig = Field(default_factory=ObservabilityConfig)
    api: APIConfig = Field(default_factory=APIConfig)
