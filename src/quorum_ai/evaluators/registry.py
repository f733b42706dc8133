"""Evaluator registries: which evaluators score a case type, and with what weight.

A :class:`RegistryCatalog` holds every configured registry by id.  Registries
come from domain manifests (auto-discovered) and may be overridden or
extended from a YAML/JSON file::

    registries:
      - registry_id: aviation-strict
        case_type: Underwriting
        extends: aviation-default
        evaluators:
          - evaluator_id: maintenance_aging
            weight: 2.0
            hard_blocking: true
          - evaluator_id: ground_risk
            enabled: false
"""

from __future__ import annotations

import dataclasses
import importlib
import logging
import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any, Iterable, Iterator, Mapping, Sequence

from quorum_ai.exceptions import EmptyRegistryError, RegistryNotFoundError
from quorum_ai.models import CaseType, freeze

if TYPE_CHECKING:
    from quorum_ai.domains.registry import DomainConfig
    from quorum_ai.interfaces.evaluator import IEvaluator

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class EvaluatorSpec:
    """Registry entry for one evaluator.

    ``evaluator`` is a dotted path (``module.path:ClassName``) resolved and
    instantiated when the registry is built.  ``capability`` names the case
    attribute bag the evaluator reads.
    """

    evaluator_id: str
    display_name: str
    evaluator: str = ""
    capability: str = ""
    weight: float = 1.0
    hard_blocking: bool = False
    reference_data: tuple[str, ...] = ()
    params: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.evaluator_id:
            raise ValueError("Evaluator id must be non-empty")
        weight = float(self.weight)
        if not (math.isfinite(weight) and weight > 0):
            raise ValueError(
                f"Evaluator {self.evaluator_id!r} weight must be a positive number, got {self.weight!r}"
            )
        object.__setattr__(self, "weight", weight)
        object.__setattr__(self, "reference_data", tuple(self.reference_data))
        object.__setattr__(self, "params", freeze(dict(self.params)))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> EvaluatorSpec:
        return cls(
            evaluator_id=str(data["evaluator_id"]),
            display_name=data.get("display_name", data["evaluator_id"]),
            evaluator=data.get("evaluator", ""),
            capability=data.get("capability", ""),
            weight=data.get("weight", 1.0),
            hard_blocking=bool(data.get("hard_blocking", False)),
            reference_data=tuple(data.get("reference_data", ())),
            params=data.get("params", {}),
        )

    def with_overrides(self, data: Mapping[str, Any]) -> EvaluatorSpec:
        """Return a copy with the fields present in *data* replaced."""
        changes = {
            k: v
            for k, v in data.items()
            if k in {f.name for f in dataclasses.fields(self)} and k != "evaluator_id"
        }
        if "params" in changes:
            changes["params"] = {**self.params, **changes["params"]}
        return dataclasses.replace(self, **changes)


class EvaluatorRegistry:
    """The ordered evaluator set bound to one case type.

    Registration order is significant: it is the final tie-breaker when
    ranking suggestions, and the order verdicts appear in the audit trail.
    """

    def __init__(
        self,
        registry_id: str,
        case_type: CaseType,
        specs: Sequence[EvaluatorSpec],
        *,
        evaluators: Mapping[str, IEvaluator] | None = None,
    ) -> None:
        self.registry_id = registry_id
        self.case_type = CaseType(case_type)
        self._specs: tuple[EvaluatorSpec, ...] = tuple(specs)
        self._positions: dict[str, int] = {}
        for position, spec in enumerate(self._specs):
            if spec.evaluator_id in self._positions:
                raise ValueError(
                    f"Registry {registry_id!r} lists evaluator {spec.evaluator_id!r} twice"
                )
            self._positions[spec.evaluator_id] = position

        provided = dict(evaluators or {})
        self._evaluators: dict[str, IEvaluator] = {}
        for spec in self._specs:
            if spec.evaluator_id in provided:
                self._evaluators[spec.evaluator_id] = provided[spec.evaluator_id]
            elif spec.evaluator:
                self._evaluators[spec.evaluator_id] = import_dotted_path(spec.evaluator)()
            else:
                raise ValueError(
                    f"Evaluator {spec.evaluator_id!r} in registry {registry_id!r} "
                    f"has no implementation configured"
                )

    def __len__(self) -> int:
        return len(self._specs)

    def __iter__(self) -> Iterator[EvaluatorSpec]:
        return iter(self._specs)

    @property
    def specs(self) -> tuple[EvaluatorSpec, ...]:
        return self._specs

    @property
    def capabilities(self) -> list[str]:
        """Attribute bags read by this registry's evaluators, in registration order."""
        seen: list[str] = []
        for spec in self._specs:
            if spec.capability and spec.capability not in seen:
                seen.append(spec.capability)
        return seen

    def spec(self, evaluator_id: str) -> EvaluatorSpec:
        if evaluator_id not in self._positions:
            raise KeyError(f"Evaluator {evaluator_id!r} not in registry {self.registry_id!r}")
        return self._specs[self._positions[evaluator_id]]

    def evaluator(self, evaluator_id: str) -> IEvaluator:
        self.spec(evaluator_id)
        return self._evaluators[evaluator_id]

    def weight(self, evaluator_id: str) -> float:
        return self.spec(evaluator_id).weight

    def position(self, evaluator_id: str) -> int:
        """Registration index; unknown ids sort after every registered one."""
        return self._positions.get(evaluator_id, len(self._specs))

    def is_hard_blocking(self, evaluator_id: str) -> bool:
        return self.spec(evaluator_id).hard_blocking

    def describe(self) -> dict[str, Any]:
        return {
            "registry_id": self.registry_id,
            "case_type": self.case_type.value,
            "evaluators": [
                {
                    "evaluator_id": s.evaluator_id,
                    "display_name": s.display_name,
                    "capability": s.capability,
                    "weight": s.weight,
                    "hard_blocking": s.hard_blocking,
                    "reference_data": list(s.reference_data),
                }
                for s in self._specs
            ],
        }


class RegistryCatalog:
    """All configured evaluator registries, keyed by registry id."""

    def __init__(self) -> None:
        self._registries: dict[str, EvaluatorRegistry] = {}

    def register(self, registry: EvaluatorRegistry) -> None:
        if registry.registry_id in self._registries:
            log.warning("Registry %r already registered, overwriting", registry.registry_id)
        self._registries[registry.registry_id] = registry
        log.debug(
            "Registered evaluator registry %s (%s, %d evaluators)",
            registry.registry_id,
            registry.case_type.value,
            len(registry),
        )

    def get(self, registry_id: str) -> EvaluatorRegistry:
        """Get a registry by id.

        Raises:
            RegistryNotFoundError: If the registry is not registered.
        """
        if registry_id not in self._registries:
            raise RegistryNotFoundError(
                f"Registry {registry_id!r} not found. "
                f"Available: {sorted(self._registries.keys())}"
            )
        return self._registries[registry_id]

    def has(self, registry_id: str) -> bool:
        return registry_id in self._registries

    def default_for(self, case_type: CaseType) -> EvaluatorRegistry:
        """First registry registered for *case_type*.

        Raises:
            EmptyRegistryError: No registry scores this case type.
        """
        for registry in self._registries.values():
            if registry.case_type is CaseType(case_type):
                return registry
        raise EmptyRegistryError(f"No evaluator registry configured for case type {CaseType(case_type).value}")

    def list_registries(self) -> list[EvaluatorRegistry]:
        """Return all registries, sorted by id."""
        return [self._registries[k] for k in sorted(self._registries)]

    def register_domains(self, domains: Iterable[DomainConfig]) -> None:
        """Build and register the default registry of each domain manifest."""
        for domain in domains:
            self.register(
                EvaluatorRegistry(domain.registry_id, domain.case_type, domain.evaluators)
            )

    def load_file(self, path: Path) -> None:
        """Register registries declared in a YAML/JSON file (see module docstring)."""
        from quorum_ai.reference.file_store import load_data_file

        data = load_data_file(path)
        entries = data.get("registries", [])
        for entry in entries:
            self.register(self._build_from_entry(entry))
        log.info("Loaded %d registr(y/ies) from %s", len(entries), path)

    def _build_from_entry(self, entry: Mapping[str, Any]) -> EvaluatorRegistry:
        registry_id = str(entry["registry_id"])
        base_id = entry.get("extends")
        specs: list[EvaluatorSpec] = []
        evaluators: dict[str, IEvaluator] = {}
        if base_id:
            base = self.get(base_id)
            specs = list(base.specs)
            evaluators = {s.evaluator_id: base.evaluator(s.evaluator_id) for s in base.specs}
            case_type = CaseType(entry.get("case_type", base.case_type))
        else:
            case_type = CaseType(entry["case_type"])

        for item in entry.get("evaluators", []):
            evaluator_id = str(item["evaluator_id"])
            existing = next((i for i, s in enumerate(specs) if s.evaluator_id == evaluator_id), None)
            if not item.get("enabled", True):
                if existing is not None:
                    specs.pop(existing)
                continue
            if existing is not None:
                specs[existing] = specs[existing].with_overrides(item)
                if "evaluator" in item:
                    evaluators.pop(evaluator_id, None)
            else:
                specs.append(EvaluatorSpec.from_dict(item))

        evaluators = {k: v for k, v in evaluators.items() if any(s.evaluator_id == k for s in specs)}
        return EvaluatorRegistry(registry_id, case_type, specs, evaluators=evaluators)


# ── Internal helpers ────────────────────────────────────────────────


def import_dotted_path(dotted: str) -> Any:
    """Import ``module.path:ClassName`` or ``module.path.attr``."""
    if ":" in dotted:
        module_path, obj_name = dotted.rsplit(":", 1)
    elif "." in dotted:
        module_path, obj_name = dotted.rsplit(".", 1)
    else:
        return importlib.import_module(dotted)

    mod = importlib.import_module(module_path)
    return getattr(mod, obj_name)
