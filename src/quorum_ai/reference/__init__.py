"""Reference-data stores: guideline citations and historical precedents.

Factory function::

    from quorum_ai.reference import create_reference_stores
    guidelines, precedents = create_reference_stores(settings.reference, domains)
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Iterable

from quorum_ai.reference.file_store import FileGuidelineStore, FilePrecedentStore
from quorum_ai.reference.memory_store import MemoryGuidelineStore, MemoryPrecedentStore
from quorum_ai.reference.models import GuidelineEntry, PrecedentRecord

if TYPE_CHECKING:
    from quorum_ai.core.config import ReferenceConfig
    from quorum_ai.domains.registry import DomainConfig
    from quorum_ai.interfaces.reference import IGuidelineStore, IPrecedentStore


def create_reference_stores(
    config: ReferenceConfig,
    domains: Iterable[DomainConfig] = (),
) -> tuple[IGuidelineStore, IPrecedentStore]:
    """Build guideline and precedent stores seeded from domain manifests."""
    domains = list(domains)
    seed_guidelines = [g for d in domains for g in d.guidelines]
    seed_precedents = [p for d in domains for p in d.precedents]

    guidelines: IGuidelineStore
    precedents: IPrecedentStore
    if config.guidelines_file is not None:
        guidelines = FileGuidelineStore(config.guidelines_file, seed_guidelines)
    else:
        guidelines = MemoryGuidelineStore(seed_guidelines)
    if config.precedents_file is not None:
        precedents = FilePrecedentStore(config.precedents_file, seed_precedents)
    else:
        precedents = MemoryPrecedentStore(seed_precedents)
    return guidelines, precedents


__all__ = [
    "FileGuidelineStore",
    "FilePrecedentStore",
    "GuidelineEntry",
    "MemoryGuidelineStore",
    "MemoryPrecedentStore",
    "PrecedentRecord",
    "create_reference_stores",
]
