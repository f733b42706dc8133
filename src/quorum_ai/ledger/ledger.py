"""Exposure ledger: the one shared mutable resource of the engine.

Reads (snapshots taken for threshold checks) may run concurrently with each
other.  A commit holds a per-category write lock, so it excludes both other
commits and reads of the categories it touches.  Locks are always taken in
category registration order.

Every category carries its own version, bumped only by commits that move
it.  A guarded commit compares just the versions of the categories it
writes, so commits on disjoint categories never contend.

Usage::

    ledger = ExposureLedger.from_file(Path("config/ledger.yaml"))
    snapshot = ledger.snapshot()
    entries = ledger.commit("SUB-001", {"TEB Hull Value": 45e6}, Decision.QUOTE,
                            expected_versions=snapshot.category_versions)
"""

from __future__ import annotations

import logging
import math
import threading
import time
from contextlib import ExitStack, contextmanager
from pathlib import Path
from typing import Any, Iterable, Iterator, Mapping

from quorum_ai.exceptions import (
    CommitNotPermittedError,
    InvalidCaseInputError,
    LedgerContentionError,
)
from quorum_ai.ledger.models import ExposureCategory, LedgerEntry, LedgerSnapshot
from quorum_ai.models import Decision

log = logging.getLogger(__name__)


class _ReadWriteLock:
    """Many readers or one writer; waiting writers block new readers."""

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._writers_waiting = 0

    def acquire_read(self, timeout: float | None) -> bool:
        deadline = None if timeout is None else time.monotonic() + timeout
        with self._cond:
            while self._writer or self._writers_waiting:
                if not self._cond.wait(_remaining(deadline)):
                    return False
            self._readers += 1
            return True

    def release_read(self) -> None:
        with self._cond:
            self._readers -= 1
            if self._readers == 0:
                self._cond.notify_all()

    def acquire_write(self, timeout: float | None) -> bool:
        deadline = None if timeout is None else time.monotonic() + timeout
        with self._cond:
            self._writers_waiting += 1
            try:
                while self._writer or self._readers:
                    if not self._cond.wait(_remaining(deadline)):
                        return False
                self._writer = True
                return True
            finally:
                self._writers_waiting -= 1
                if not self._writer:
                    self._cond.notify_all()

    def release_write(self) -> None:
        with self._cond:
            self._writer = False
            self._cond.notify_all()


def _remaining(deadline: float | None) -> float | None:
    if deadline is None:
        return None
    return max(0.0, deadline - time.monotonic())


class ExposureLedger:
    """Committed exposure per category, with ordered categories and a version."""

    def __init__(
        self,
        categories: Iterable[ExposureCategory] = (),
        *,
        lock_timeout: float | None = 2.0,
    ) -> None:
        self._order: list[str] = []
        self._categories: dict[str, ExposureCategory] = {}
        self._locks: dict[str, _ReadWriteLock] = {}
        self._category_versions: dict[str, int] = {}
        self._meta = threading.Lock()
        self._version = 0
        self._history: list[LedgerEntry] = []
        self._lock_timeout = lock_timeout
        for category in categories:
            self.add_category(category)

    @classmethod
    def from_dicts(cls, items: Iterable[Mapping[str, Any]], **kwargs: Any) -> ExposureLedger:
        return cls((ExposureCategory.from_dict(i) for i in items), **kwargs)

    @classmethod
    def from_file(cls, path: Path, **kwargs: Any) -> ExposureLedger:
        """Load categories from YAML/JSON: ``{"categories": [{name, current_exposure, limit}]}``."""
        from quorum_ai.reference.file_store import load_data_file

        data = load_data_file(path)
        ledger = cls.from_dicts(data.get("categories", []), **kwargs)
        log.info("Loaded %d exposure categories from %s", len(ledger), path)
        return ledger

    # ── Introspection ───────────────────────────────────────────────

    def __len__(self) -> int:
        return len(self._order)

    def __contains__(self, name: object) -> bool:
        return name in self._categories

    @property
    def categories(self) -> list[str]:
        """Category names in registration order."""
        return list(self._order)

    @property
    def version(self) -> int:
        with self._meta:
            return self._version

    def history(self, case_id: str | None = None) -> list[LedgerEntry]:
        with self._meta:
            entries = list(self._history)
        if case_id is not None:
            entries = [e for e in entries if e.case_id == case_id]
        return entries

    # ── Mutation ────────────────────────────────────────────────────

    def add_category(self, category: ExposureCategory) -> None:
        """Track a new category; it is ordered after every existing one."""
        with self._meta:
            if category.name in self._categories:
                raise ValueError(f"Exposure category {category.name!r} already tracked")
            self._order.append(category.name)
            self._categories[category.name] = category
            self._locks[category.name] = _ReadWriteLock()
            self._category_versions[category.name] = 0
            self._version += 1
        log.debug("Tracking exposure category %s (limit %.2f)", category.name, category.limit)

    def snapshot(self, names: Iterable[str] | None = None) -> LedgerSnapshot:
        """Consistent copy of the named categories (all by default).

        Raises:
            InvalidCaseInputError: A name is not a tracked category.
            LedgerContentionError: A read lock could not be taken in time.
        """
        selected = self._ordered(names)
        with self._locked(selected, write=False):
            with self._meta:
                return LedgerSnapshot(
                    version=self._version,
                    categories=tuple(self._categories[n] for n in selected),
                    category_versions={n: self._category_versions[n] for n in selected},
                )

    def commit(
        self,
        case_id: str,
        deltas: Mapping[str, float],
        decision: Decision | None,
        *,
        expected_version: int | None = None,
        expected_versions: Mapping[str, int] | None = None,
    ) -> list[LedgerEntry]:
        """Move ``current_exposure += delta`` for every non-zero delta.

        *expected_versions* guards only the categories this commit moves;
        categories absent from it are not checked.  *expected_version* is
        the coarser guard: any commit anywhere since the read is contention.

        Raises:
            CommitNotPermittedError: *decision* is missing or a decline.
            InvalidCaseInputError: Unknown category, or exposure would go negative.
            LedgerContentionError: Lock timeout, or a guarded version moved
                since the caller read it.
        """
        if decision is None or not Decision(decision).is_accepted:
            label = decision.value if isinstance(decision, Decision) else "undecided"
            raise CommitNotPermittedError(
                f"Case {case_id!r} cannot commit exposure: decision is {label}"
            )

        moves = {name: float(delta) for name, delta in deltas.items() if delta}
        for name, delta in moves.items():
            if not math.isfinite(delta):
                raise InvalidCaseInputError(f"Delta for category {name!r} must be finite")
        selected = self._ordered(moves)

        with self._locked(selected, write=True):
            with self._meta:
                if expected_version is not None and expected_version != self._version:
                    raise LedgerContentionError(
                        f"Ledger changed since version {expected_version} "
                        f"(now {self._version}); re-check thresholds and retry"
                    )
                guard = expected_versions or {}
                stale = [n for n in selected if n in guard and guard[n] != self._category_versions[n]]
                if stale:
                    raise LedgerContentionError(
                        f"Exposure categor(y/ies) {', '.join(stale)} changed since read; "
                        "re-check thresholds and retry"
                    )
                updated: dict[str, ExposureCategory] = {}
                for name in selected:
                    current = self._categories[name]
                    proposed = current.current_exposure + moves[name]
                    if proposed < 0:
                        raise InvalidCaseInputError(
                            f"Commit would make {name!r} exposure negative ({proposed:.2f})"
                        )
                    updated[name] = ExposureCategory(name, proposed, current.limit)

                if updated:
                    self._version += 1
                entries = []
                for name, category in updated.items():
                    self._categories[name] = category
                    self._category_versions[name] += 1
                    entries.append(
                        LedgerEntry(
                            case_id=case_id,
                            category=name,
                            delta=moves[name],
                            resulting_exposure=category.current_exposure,
                            version=self._version,
                        )
                    )
                self._history.extend(entries)

        log.info(
            "Committed case %s to ledger: %d categor(y/ies), version %d",
            case_id,
            len(entries),
            entries[-1].version if entries else self.version,
        )
        return entries

    # ── Internal helpers ────────────────────────────────────────────

    def _ordered(self, names: Iterable[str] | None) -> list[str]:
        if names is None:
            return list(self._order)
        wanted = set(names)
        unknown = sorted(wanted - set(self._categories))
        if unknown:
            raise InvalidCaseInputError(
                f"Unknown exposure categor(y/ies): {', '.join(unknown)}. "
                f"Tracked: {self._order}"
            )
        return [n for n in self._order if n in wanted]

    @contextmanager
    def _locked(self, names: list[str], *, write: bool) -> Iterator[None]:
        with ExitStack() as stack:
            for name in names:
                lock = self._locks[name]
                acquired = (
                    lock.acquire_write(self._lock_timeout)
                    if write
                    else lock.acquire_read(self._lock_timeout)
                )
                if not acquired:
                    raise LedgerContentionError(
                        f"Timed out waiting for {'write' if write else 'read'} lock on {name!r}"
                    )
                stack.callback(lock.release_write if write else lock.release_read)
            yield
