"""
Source Cache Module
===================

Keyed store of provider API call outcomes consumed by rules.

A collector fills the cache with one entry per ``(service, operation,
scope)`` before evaluation starts. The cache is then frozen and shared,
read-only, by every rule and every concurrent scope worker. A lookup never
triggers network I/O.

Three states matter to a rule:

- ``None`` (absent): the scan did not target that scope; skip silently.
- an entry with ``error`` set (or no data): report a dependency error.
- an entry with ``data``: evaluate.

Classes
-------
CacheEntry
    Outcome of one provider API call.
SourceCache
    The keyed store.
SourceTrace
    Thread-safe record of the keys a rule consulted.

Example
-------
>>> cache = SourceCache()
>>> cache.put("ec2", "describeSecurityGroups", "us-east-1", data=[])
>>> cache.freeze()
>>> trace = SourceTrace()
>>> entry = add_source(cache, trace, ("ec2", "describeSecurityGroups", "us-east-1"))
>>> entry.ok
True
"""

from __future__ import annotations

import json
import logging
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterator, Optional, Tuple, Union

from cloudwarden.core.exceptions import CacheFrozenError, SnapshotError

# Module logger
logger = logging.getLogger(__name__)

# Scope used by services that are not regional (CloudFront, IAM, ...)
GLOBAL_SCOPE = "global"

CacheKey = Tuple[str, str, str]


@dataclass(frozen=True)
class CacheEntry:
    """
    Outcome of a single provider API call.

    Parameters
    ----------
    data : any, optional
        Response payload on success (usually a list of resources).
    error : any, optional
        Error message or error object on failure.
    """

    data: Any = None
    error: Any = None

    @property
    def ok(self) -> bool:
        """True when the call succeeded and returned data."""
        return self.error is None and self.data is not None

    @property
    def error_message(self) -> str:
        """Printable reason for a failed entry."""
        if self.error is None:
            return "Unable to obtain data"
        if isinstance(self.error, str):
            return self.error
        if isinstance(self.error, dict):
            return str(self.error.get("message") or self.error.get("code") or self.error)
        return str(self.error)

    def to_dict(self) -> Dict[str, Any]:
        """Snapshot form of the entry (``{"data": ...}`` or ``{"err": ...}``)."""
        if self.error is not None:
            return {"err": self.error}
        return {"data": self.data}


class SourceCache:
    """
    Keyed store of provider API call outcomes.

    Parameters
    ----------
    entries : dict, optional
        Initial ``{(service, operation, scope): CacheEntry}`` mapping.

    Notes
    -----
    Writes are only accepted until :meth:`freeze` is called. After that the
    cache is an immutable snapshot and needs no locking for readers.
    """

    def __init__(self, entries: Optional[Dict[CacheKey, CacheEntry]] = None) -> None:
        self._entries: Dict[CacheKey, CacheEntry] = dict(entries or {})
        self._frozen = False

    @property
    def frozen(self) -> bool:
        """Whether the cache has been sealed for evaluation."""
        return self._frozen

    def freeze(self) -> SourceCache:
        """Seal the cache; later writes raise :class:`CacheFrozenError`."""
        self._frozen = True
        logger.debug(f"Source cache frozen with {len(self._entries)} entries")
        return self

    def put(
        self,
        service: str,
        operation: str,
        scope: str,
        data: Any = None,
        error: Any = None,
    ) -> None:
        """
        Store the outcome of one API call.

        Raises
        ------
        CacheFrozenError
            If the cache has already been frozen.
        """
        key = (service, operation, scope)
        if self._frozen:
            raise CacheFrozenError("Source cache is read-only during evaluation", key=key)
        self._entries[key] = CacheEntry(data=data, error=error)

    def lookup(self, service: str, operation: str, scope: str) -> Optional[CacheEntry]:
        """
        Return the entry for a key, or ``None`` when it was never collected.
        """
        return self._entries.get((service, operation, scope))

    def scopes(self, service: str, operation: str) -> list:
        """Scopes for which the given call has an entry."""
        return sorted(
            scope for (svc, op, scope) in self._entries if svc == service and op == operation
        )

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __iter__(self) -> Iterator[CacheKey]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    # =========================================================================
    # Snapshots
    # =========================================================================

    def to_dict(self) -> Dict[str, Any]:
        """Nested ``service -> operation -> scope -> entry`` snapshot."""
        snapshot: Dict[str, Any] = {}
        for (service, operation, scope), entry in self._entries.items():
            snapshot.setdefault(service, {}).setdefault(operation, {})[scope] = entry.to_dict()
        return snapshot

    @classmethod
    def from_dict(cls, snapshot: Dict[str, Any]) -> SourceCache:
        """
        Build a cache from a nested snapshot.

        Each leaf is ``{"data": ...}`` or ``{"err": ...}``.

        Raises
        ------
        SnapshotError
            If the snapshot does not have the nested mapping shape.
        """
        if not isinstance(snapshot, dict):
            raise SnapshotError("Snapshot root must be an object")

        cache = cls()
        for service, operations in snapshot.items():
            if not isinstance(operations, dict):
                raise SnapshotError(
                    "Service entry must map operations to scopes",
                    details={"service": service},
                )
            for operation, scopes in operations.items():
                if not isinstance(scopes, dict):
                    raise SnapshotError(
                        "Operation entry must map scopes to results",
                        key=(service, operation),
                    )
                for scope, leaf in scopes.items():
                    if not isinstance(leaf, dict):
                        raise SnapshotError(
                            "Cache leaf must be an object",
                            key=(service, operation, scope),
                        )
                    cache.put(
                        service,
                        operation,
                        scope,
                        data=leaf.get("data"),
                        error=leaf.get("err", leaf.get("error")),
                    )
        return cache

    @classmethod
    def load(cls, path: Union[str, Path]) -> SourceCache:
        """Read a JSON snapshot file into a new (unfrozen) cache."""
        path = Path(path)
        try:
            with path.open(encoding="utf-8") as f:
                snapshot = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise SnapshotError(f"Unable to read cache snapshot: {e}", details={"path": str(path)})

        cache = cls.from_dict(snapshot)
        logger.info(f"Loaded {len(cache)} cache entries from {path}")
        return cache

    def __repr__(self) -> str:
        """Return string representation."""
        return f"SourceCache(entries={len(self._entries)}, frozen={self._frozen})"


class SourceTrace:
    """
    Record of the cache entries a rule consulted.

    Scope workers of the same rule record into one trace concurrently, so
    writes go through a lock.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._trace: Dict[str, Dict[str, Dict[str, Optional[CacheEntry]]]] = {}

    def record(self, key: CacheKey, entry: Optional[CacheEntry]) -> None:
        service, operation, scope = key
        with self._lock:
            scopes = self._trace.setdefault(service, {}).setdefault(operation, {})
            scopes.setdefault(scope, entry)

    def as_dict(self) -> Dict[str, Any]:
        """Copy of the trace; absent lookups are left out."""
        with self._lock:
            return {
                service: {
                    operation: {scope: e for scope, e in scopes.items() if e is not None}
                    for operation, scopes in operations.items()
                }
                for service, operations in self._trace.items()
            }


def add_source(cache: SourceCache, source: SourceTrace, key: CacheKey) -> Optional[CacheEntry]:
    """
    Look up ``key`` in ``cache`` and record it in ``source``.

    Returns
    -------
    CacheEntry or None
        The entry, or ``None`` when the key was never collected.
    """
    entry = cache.lookup(*key)
    source.record(key, entry)
    return entry
