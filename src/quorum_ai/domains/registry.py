"""Convention-based domain registry with auto-discovery.

Each domain is a Python package under ``quorum_ai/domains/`` with a
``__domain__.py`` manifest that exposes a ``domain`` attribute of type
``DomainConfig``.

Usage::

    from quorum_ai.domains.registry import DomainRegistry

    registry = DomainRegistry()
    registry.auto_discover()
    aviation = registry.get("aviation")
    print(aviation.registry_id)    # "aviation-default"
    print(aviation.case_type)      # CaseType.UNDERWRITING
"""

from __future__ import annotations

import importlib
import logging
import pkgutil
from dataclasses import dataclass, field

from quorum_ai.evaluators.registry import EvaluatorSpec
from quorum_ai.ledger.models import ExposureCategory
from quorum_ai.models import CaseType
from quorum_ai.reference.models import GuidelineEntry, PrecedentRecord

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class DomainConfig:
    """Manifest for a domain module.

    Declares the case type the domain scores, its default evaluator
    registry, the seed reference data its evaluators cite, and the ledger
    categories its cases draw on when no ledger file is configured.
    """

    name: str
    display_name: str
    case_type: CaseType
    registry_id: str
    description: str = ""
    evaluators: tuple[EvaluatorSpec, ...] = ()
    guidelines: tuple[GuidelineEntry, ...] = field(default_factory=tuple)
    precedents: tuple[PrecedentRecord, ...] = field(default_factory=tuple)
    exposure_categories: tuple[ExposureCategory, ...] = field(default_factory=tuple)


class DomainRegistry:
    """Registry of discovered domain modules.

    Domains are registered either manually via :meth:`register` or
    automatically via :meth:`auto_discover`, which scans
    ``quorum_ai.domains`` sub-packages for ``__domain__.py`` manifests.
    """

    def __init__(self) -> None:
        self._domains: dict[str, DomainConfig] = {}

    def register(self, config: DomainConfig) -> None:
        """Register a domain config.

        Re-registering a domain replaces it.  Two different domains may not
        claim the same default registry id.

        Raises:
            ValueError: *config.registry_id* belongs to another domain.
        """
        for other in self._domains.values():
            if other.name != config.name and other.registry_id == config.registry_id:
                raise ValueError(
                    f"Domain {config.name!r} reuses registry id {config.registry_id!r} "
                    f"already declared by domain {other.name!r}"
                )
        if config.name in self._domains:
            log.warning("Domain %r already registered, overwriting", config.name)
        self._domains[config.name] = config
        log.debug("Registered domain %s (%s, registry %s)", config.name, config.case_type.value, config.registry_id)

    def get(self, name: str) -> DomainConfig:
        """Get a domain config by name.

        Raises:
            KeyError: If the domain is not registered.
        """
        if name not in self._domains:
            raise KeyError(
                f"Domain {name!r} not found. "
                f"Available: {sorted(self._domains.keys())}"
            )
        return self._domains[name]

    def list_domains(self) -> list[DomainConfig]:
        """Return all registered domain configs, sorted by name."""
        return sorted(self._domains.values(), key=lambda d: d.name)

    def for_case_type(self, case_type: CaseType) -> list[DomainConfig]:
        """Domains scoring *case_type*, sorted by name."""
        return [d for d in self.list_domains() if d.case_type is CaseType(case_type)]

    def __contains__(self, name: object) -> bool:
        return name in self._domains

    def __len__(self) -> int:
        return len(self._domains)

    def auto_discover(self) -> None:
        """Scan ``quorum_ai.domains`` sub-packages for ``__domain__`` manifests."""
        import quorum_ai.domains as domains_pkg

        for _importer, modname, ispkg in pkgutil.iter_modules(
            domains_pkg.__path__, prefix="quorum_ai.domains."
        ):
            if not ispkg:
                continue

            domain_module_name = f"{modname}.__domain__"
            try:
                mod = importlib.import_module(domain_module_name)
            except ModuleNotFoundError:
                log.debug("No __domain__.py in %s, skipping", modname)
                continue

            config = getattr(mod, "domain", None)
            if not isinstance(config, DomainConfig):
                log.warning(
                    "%s.__domain__.domain is not a DomainConfig, skipping",
                    modname,
                )
                continue

            self.register(config)

        log.info(
            "Auto-discovered %d domain(s): %s",
            len(self._domains),
            ", ".join(sorted(self._domains.keys())),
        )
