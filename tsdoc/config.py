"""
Central configuration for the synchronization engine.

Connection string, project (index naming), output shapes, merge label and
the debug level all live here.  :meth:`SyncConfig.from_env` reads them from
the process environment, loading a ``.env`` file first.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

__all__ = ["OutputModes", "SyncConfig"]


@dataclass(frozen=True)
class OutputModes:
    """Which document shapes to emit.  The flags are not mutually exclusive.

    * ``wide``  — one doc per point, every tag/field a top-level attribute.
    * ``array`` — one doc per point, tags/fields inside a ``data`` sequence.
    * ``flat``  — one doc per tag/field.

    ``wide`` and ``array`` together still produce a single document.
    """

    wide: bool = True
    array: bool = False
    flat: bool = True

    def any(self) -> bool:
        return self.wide or self.array or self.flat

    @classmethod
    def parse(cls, text: str) -> "OutputModes":
        """Build from a comma list such as ``"wide,flat"``.

        >>> OutputModes.parse("array")
        OutputModes(wide=False, array=True, flat=False)
        """
        names = {part.strip().lower() for part in text.split(",") if part.strip()}
        unknown = names - {"wide", "array", "flat"}
        if unknown:
            raise ValueError(f"Unknown output mode(s): {', '.join(sorted(unknown))}")
        return cls(wide="wide" in names, array="array" in names, flat="flat" in names)


def _env_int(name: str, default: int) -> int:
    value = os.environ.get(name)
    if value is None or not value.strip():
        return default
    try:
        return int(value)
    except ValueError:
        return default


@dataclass
class SyncConfig:
    """Immutable‑by‑convention configuration container."""

    # ── Elasticsearch ──────────────────────────────────────────────────
    es_url: str = "http://localhost:9200"
    request_timeout: int = 30

    # ── Index naming ───────────────────────────────────────────────────
    project: str = ""

    # ── Document shapes ────────────────────────────────────────────────
    outputs: OutputModes = field(default_factory=OutputModes)
    merge: str | None = None
    """Shared series label for field-bearing points; ``None`` disables merging."""

    # ── Bulk policy ────────────────────────────────────────────────────
    delete_conflict_retries: int = 0
    """Re-submit deletes that hit a version conflict this many times."""

    # ── Diagnostics ────────────────────────────────────────────────────
    debug: int = 0

    @classmethod
    def from_env(cls) -> "SyncConfig":
        """Read ``ES_URL``, ``PROJECT``, ``ES_OUTPUTS``, ``ES_MERGE``, ``DEBUG``..."""
        load_dotenv()
        outputs = os.environ.get("ES_OUTPUTS")
        return cls(
            es_url=os.environ.get("ES_URL", cls.es_url),
            request_timeout=_env_int("ES_TIMEOUT", cls.request_timeout),
            project=os.environ.get("GHA2DB_PROJECT", os.environ.get("PROJECT", "")),
            outputs=OutputModes.parse(outputs) if outputs else OutputModes(),
            merge=os.environ.get("ES_MERGE") or None,
            delete_conflict_retries=_env_int(
                "ES_DELETE_CONFLICT_RETRIES", cls.delete_conflict_retries,
            ),
            debug=_env_int("DEBUG", cls.debug),
        )
