#!/usr/bin/env python3
"""
tsdoc — synchronize a file of time-series points into Elasticsearch.

Usage:
    # Write points (one JSON object per line) into d_<project>
    python -m tsdoc.pipeline --points points.jsonl --project kubernetes

    # Choose shapes and merge field-bearing series under one type
    python -m tsdoc.pipeline --points points.jsonl --outputs wide,array --merge all

    # Build documents only, no cluster needed
    python -m tsdoc.pipeline --points points.jsonl --dry-run

Each input line looks like::

    {"name": "commits", "t": "2018-01-01T00:00:00", "added": "2018-01-02T10:00:00",
     "period": "d", "fields": {"value": 12}, "tags": {"repo": "kubernetes"}}

Connection settings default to the environment (``ES_URL``, ``PROJECT``,
``ES_OUTPUTS``, ``ES_MERGE``, ``DEBUG``; a ``.env`` file is honoured).
"""
from __future__ import annotations

import argparse
import json
import logging
import sys
from collections import Counter
from dataclasses import replace

from rich.console import Console
from rich.table import Table as RichTable

from tsdoc.builder.documents import build_documents
from tsdoc.config import OutputModes, SyncConfig
from tsdoc.exceptions import SyncError
from tsdoc.models.point import TSPoint
from tsdoc.store.elastic_store import SyncResult, connect
from tsdoc.store.mapping import index_name

logger = logging.getLogger("pipeline")

console = Console()


# ─────────────────────────────────────────────────────────────────────
# Input
# ─────────────────────────────────────────────────────────────────────

def load_points(path: str) -> list[TSPoint]:
    """Read one JSON point per non-blank line of *path*."""
    points = []
    with open(path, encoding="utf-8") as f:
        for lineno, line in enumerate(f, 1):
            line = line.strip()
            if not line:
                continue
            try:
                data = json.loads(line)
            except json.JSONDecodeError as exc:
                raise ValueError(f"{path}:{lineno}: invalid JSON: {exc}") from exc
            points.append(TSPoint.from_dict(data))
    logger.info("Loaded %d points from %s", len(points), path)
    return points


# ─────────────────────────────────────────────────────────────────────
# Stages
# ─────────────────────────────────────────────────────────────────────

def stage_dry_run(points: list[TSPoint], config: SyncConfig) -> Counter:
    """Build every document without touching the cluster; count per type."""
    per_type: Counter = Counter()
    for p in points:
        for built in build_documents(p, config.outputs, config.merge):
            per_type[built.doc["type"]] += 1
    return per_type


def stage_write(points: list[TSPoint], config: SyncConfig) -> SyncResult:
    with connect(config) as store:
        return store.write_points(points)


def _print_types(per_type: Counter) -> None:
    table = RichTable(title="Documents per type")
    table.add_column("type", style="cyan")
    table.add_column("count", justify="right")
    for doc_type, n in sorted(per_type.items()):
        table.add_row(doc_type, str(n))
    console.print(table)


def _print_result(index: str, result: SyncResult) -> None:
    table = RichTable(title=f"Synchronized into {index}")
    table.add_column("metric", style="cyan")
    table.add_column("value", justify="right")
    table.add_row("points", str(result.points))
    table.add_row("documents", str(result.items))
    table.add_row("deleted", str(result.deleted))
    table.add_row("not found", str(result.not_found))
    table.add_row("inserted", str(result.inserted))
    if result.delete_skipped:
        table.add_row("delete phase", "skipped (index empty)")
    console.print(table)


# ─────────────────────────────────────────────────────────────────────
# CLI
# ─────────────────────────────────────────────────────────────────────

def build_config(args: argparse.Namespace) -> SyncConfig:
    """Environment defaults overridden by explicit command-line flags."""
    config = SyncConfig.from_env()
    overrides = {}
    if args.es_url:
        overrides["es_url"] = args.es_url
    if args.project:
        overrides["project"] = args.project
    if args.outputs:
        overrides["outputs"] = OutputModes.parse(args.outputs)
    if args.merge is not None:
        overrides["merge"] = args.merge or None
    if args.debug is not None:
        overrides["debug"] = args.debug
    return replace(config, **overrides)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="tsdoc: synchronize time-series points into Elasticsearch",
    )
    parser.add_argument("--points", required=True, help="JSON-lines file of points")
    parser.add_argument("--es-url", type=str, help="Elasticsearch URL (default $ES_URL)")
    parser.add_argument("--project", type=str, help="Project name; index is d_<project>")
    parser.add_argument("--outputs", type=str, help="Comma list of wide,array,flat")
    parser.add_argument("--merge", type=str, default=None, help="Merge field series under this label")
    parser.add_argument("--debug", type=int, default=None, help="Debug level (>0 logs points and counts)")
    parser.add_argument("--dry-run", action="store_true", help="Build documents only, do not connect")
    args = parser.parse_args(argv)

    try:
        config = build_config(args)
    except ValueError as exc:
        parser.error(str(exc))

    logging.basicConfig(
        level=logging.DEBUG if config.debug > 0 else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s — %(message)s",
        datefmt="%H:%M:%S",
    )

    if not config.project and not args.dry_run:
        logger.error("No project given (use --project or $PROJECT).")
        return 1

    try:
        points = load_points(args.points)
        if args.dry_run:
            _print_types(stage_dry_run(points, config))
            return 0
        result = stage_write(points, config)
    except (OSError, ValueError) as exc:
        logger.error("Cannot read points: %s", exc)
        return 1
    except SyncError as exc:
        logger.error("Synchronization failed: %s", exc)
        return 1

    _print_result(index_name(config.project), result)
    return 0


if __name__ == "__main__":
    sys.exit(main())
