"""Shared fixtures for quorum-ai tests."""

from __future__ import annotations

from typing import Any

import pytest

from quorum_ai.core.config import AppSettings, DispatchConfig, LedgerConfig
from quorum_ai.domains.registry import DomainRegistry
from quorum_ai.evaluators.registry import RegistryCatalog
from quorum_ai.ledger.ledger import ExposureLedger
from quorum_ai.ledger.models import ExposureCategory
from quorum_ai.reference.memory_store import MemoryGuidelineStore, MemoryPrecedentStore


@pytest.fixture
def settings() -> AppSettings:
    """Default settings with short timeouts and no consultation model."""
    return AppSettings(
        dispatch=DispatchConfig(per_evaluator_timeout=0.5, overall_timeout=2.0, quorum_threshold=0.8),
    )


@pytest.fixture
def ledger_config() -> LedgerConfig:
    return LedgerConfig(warning_ratio=0.9, breach_ratio=1.0, commit_timeout=0.5)


@pytest.fixture
def domains() -> DomainRegistry:
    registry = DomainRegistry()
    registry.auto_discover()
    return registry


@pytest.fixture
def catalog(domains: DomainRegistry) -> RegistryCatalog:
    catalog = RegistryCatalog()
    catalog.register_domains(domains.list_domains())
    return catalog


@pytest.fixture
def guidelines(domains: DomainRegistry) -> MemoryGuidelineStore:
    return MemoryGuidelineStore(g for d in domains.list_domains() for g in d.guidelines)


@pytest.fixture
def precedents(domains: DomainRegistry) -> MemoryPrecedentStore:
    return MemoryPrecedentStore(p for d in domains.list_domains() for p in d.precedents)


@pytest.fixture
def ledger() -> ExposureLedger:
    """Aviation book: four categories, none above 80% utilization."""
    return ExposureLedger(
        [
            ExposureCategory("TEB Hull Value", 285_000_000, 500_000_000),
            ExposureCategory("G-Series Aircraft Concentration", 156_000_000, 250_000_000),
            ExposureCategory("Corporate Use Liability", 1_200_000_000, 1_500_000_000),
            ExposureCategory("New York Metro Exposure", 450_000_000, 600_000_000),
        ],
        lock_timeout=0.5,
    )


@pytest.fixture
def aviation_case() -> dict[str, Any]:
    """SUB-001: Gulfstream G650 with an under-qualified pilot."""
    return {
        "case_id": "SUB-001",
        "case_type": "Underwriting",
        "attributes": {
            "aircraft": {"make": "Gulfstream", "model": "G650", "year": 2008, "value": 45_000_000},
            "pilot": {"name": "John Smith", "total_hours": 450, "type_hours": 80, "endorsements": []},
            "maintenance": {"months_to_overhaul": 6, "engine_hours": 1850, "service_center": "Hauppauge"},
            "operations": {
                "base_airport": "TEB",
                "intended_use": "Corporate",
                "seats": 8,
                "liability_limit": 100_000_000,
                "regions": ["US"],
            },
        },
        "proposed_deltas": {
            "TEB Hull Value": 45_000_000,
            "G-Series Aircraft Concentration": 45_000_000,
            "Corporate Use Liability": 100_000_000,
            "New York Metro Exposure": 45_000_000,
        },
    }


@pytest.fixture
def portfolio_case() -> dict[str, Any]:
    """PF-001: technology-heavy growth portfolio."""
    return {
        "case_id": "PF-001",
        "case_type": "Portfolio",
        "attributes": {
            "holdings": [
                {"symbol": "NVDA", "sector": "Technology", "value": 3_200_000, "volatility": 0.45, "expected_growth": 0.18},
                {"symbol": "MSFT", "sector": "Technology", "value": 2_100_000, "volatility": 0.25, "expected_growth": 0.10},
                {"symbol": "JPM", "sector": "Financials", "value": 1_500_000, "volatility": 0.22, "expected_growth": 0.06},
                {"symbol": "JNJ", "sector": "Healthcare", "value": 1_200_000, "volatility": 0.15, "expected_growth": 0.04},
                {"symbol": "XOM", "sector": "Energy", "value": 900_000, "volatility": 0.28, "expected_growth": 0.03},
                {"symbol": "PG", "sector": "Consumer Staples", "value": 1_100_000, "volatility": 0.14, "expected_growth": 0.04},
            ],
        },
        "proposed_deltas": {"Technology Sector Allocation": 5_300_000},
    }
