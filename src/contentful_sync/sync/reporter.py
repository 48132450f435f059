"""Sync report formatting functions.

Provides human-readable and machine-readable output for a run:

- ``format_sync_report`` -- full post-run summary.
- ``report_to_json`` -- structured dict for ``--json`` output.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .models import SyncReport, SyncResult

# ------------------------------------------------------------------
# Human-readable report
# ------------------------------------------------------------------


def _describe(result: SyncResult) -> str:
    label = f"{result.content_type} '{result.key}'" if result.key else result.content_type
    if result.source_path:
        return f"  {result.source_path} -> {label} [{result.entry_id}]"
    return f"  {label} [{result.entry_id}]"


def format_sync_report(report: SyncReport) -> str:
    """Format a complete run report as human-readable text.

    Sections are only included when they contain at least one result.

    Args:
        report: The completed report.

    Returns:
        Multi-line formatted string.
    """
    lines: list[str] = []

    if report.mode == "delete":
        lines.append("Bulk delete report")
    else:
        lines.append("Sync report")
    lines.append(f"Started: {report.started_at}")
    if report.completed_at:
        lines.append(f"Completed: {report.completed_at}")
    lines.append("")

    if report.mode == "delete":
        lines.append(f"Deleted {len(report.deleted)} entries")
        return "\n".join(lines).rstrip()

    lines.append(
        f"Synced {len(report.results)} records: "
        f"{len(report.created)} created, {len(report.updated)} updated, "
        f"{len(report.published)} published, {len(report.drafts)} drafts"
    )
    lines.append(
        f"References: {report.assets_created} assets, "
        f"{report.references_created} entries created"
    )
    lines.append("")

    if report.created:
        lines.append("Created:")
        lines.extend(_describe(r) for r in report.created)
        lines.append("")

    if report.updated:
        lines.append("Updated:")
        lines.extend(_describe(r) for r in report.updated)
        lines.append("")

    if report.drafts:
        lines.append("Left as draft:")
        lines.extend(_describe(r) for r in report.drafts)
        lines.append("")

    return "\n".join(lines).rstrip()


# ------------------------------------------------------------------
# JSON output
# ------------------------------------------------------------------


def report_to_json(report: SyncReport) -> dict:
    """Convert a report to a structured dict for JSON serialisation.

    Args:
        report: The run report.

    Returns:
        Dict with run info, counts, and per-result details.
    """
    results_list = []
    for r in report.results:
        entry: dict = {
            "content_type": r.content_type,
            "key": r.key,
            "action": r.action.value,
            "published": r.published,
            "entry_id": r.entry_id,
        }
        if r.source_path:
            entry["source_path"] = r.source_path
        results_list.append(entry)

    return {
        "mode": report.mode,
        "started_at": report.started_at,
        "completed_at": report.completed_at,
        "counts": {
            "total": len(report.results),
            "created": len(report.created),
            "updated": len(report.updated),
            "published": len(report.published),
            "drafts": len(report.drafts),
            "deleted": len(report.deleted),
            "assets_created": report.assets_created,
            "references_created": report.references_created,
        },
        "results": results_list,
    }
