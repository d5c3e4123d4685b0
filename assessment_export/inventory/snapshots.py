"""
Snapshot selection helpers.

An assessment holds one or more timestamped snapshots; exports and summaries
always work on the most recent one.
"""

import logging
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any

logger = logging.getLogger(__name__)

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)

PLACEHOLDER = "-"


def _parse_timestamp(value: Any) -> datetime | None:
    """Parse a snapshot createdAt value into an aware UTC datetime."""
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value:
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            logger.debug(f"Ignoring unparseable snapshot timestamp: {value!r}")
            return None
    else:
        return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def latest_snapshot(snapshots: list[Mapping[str, Any]] | None) -> Mapping[str, Any] | None:
    """
    Return the most recent snapshot by createdAt.

    Snapshots without a usable timestamp sort as the oldest. Entries that are
    not mappings are skipped. The input list is not reordered.

    Args:
        snapshots: Snapshot mappings of an assessment

    Returns:
        The newest snapshot, or None if there are none
    """
    if not isinstance(snapshots, list):
        return None

    candidates = [snap for snap in snapshots if isinstance(snap, Mapping)]
    if len(candidates) < len(snapshots):
        logger.debug(f"Skipping {len(snapshots) - len(candidates)} malformed snapshot entries")
    if not candidates:
        return None

    return max(
        candidates,
        key=lambda snap: _parse_timestamp(snap.get("createdAt")) or _EPOCH,
    )


def has_useful_data(snapshots: list[Mapping[str, Any]] | None) -> bool:
    """
    Check whether the latest snapshot carries any exportable inventory.

    When the snapshot inventory declares a ``clusters`` key, the answer is
    whether that value is set; otherwise any of the accepted legacy shapes
    counts.

    Args:
        snapshots: Snapshot mappings of an assessment

    Returns:
        True if the newest snapshot has inventory data
    """
    snapshot = latest_snapshot(snapshots)
    if snapshot is None:
        return False

    inventory = snapshot.get("inventory")
    if isinstance(inventory, Mapping) and "clusters" in inventory:
        return inventory["clusters"] is not None

    vcenter = inventory.get("vcenter") if isinstance(inventory, Mapping) else None
    candidates = [snapshot, inventory, vcenter]
    return any(
        isinstance(candidate, Mapping)
        and (candidate.get("infra") is not None or candidate.get("vms") is not None)
        for candidate in candidates
    )


def _format_last_updated(created_at: datetime, now: datetime) -> str:
    diff_days = (now - created_at).days

    if diff_days == 0:
        return "Today"
    if diff_days == 1:
        return "1 day ago"
    if diff_days < 7:
        return f"{diff_days} days ago"
    return created_at.strftime("%Y-%m-%d %H:%M")


def parse_latest_snapshot(
    snapshots: list[Mapping[str, Any]] | None, now: datetime | None = None
) -> dict[str, str | int]:
    """
    Summarize the latest snapshot for listings.

    Counts are read from ``inventory.vcenter``; anything missing is rendered
    as ``"-"``.

    Args:
        snapshots: Snapshot mappings of an assessment
        now: Reference time for the relative "last updated" text

    Returns:
        Dict with hosts, vms, networks, datastores and lastUpdated

    Example:
        >>> parse_latest_snapshot([])["hosts"]
        '-'
    """
    summary: dict[str, str | int] = {
        "hosts": PLACEHOLDER,
        "vms": PLACEHOLDER,
        "networks": PLACEHOLDER,
        "datastores": PLACEHOLDER,
        "lastUpdated": PLACEHOLDER,
    }

    snapshot = latest_snapshot(snapshots)
    if snapshot is None:
        return summary

    inventory = snapshot.get("inventory") or {}
    vcenter = inventory.get("vcenter") or {}
    infra = vcenter.get("infra") or {}
    vms = vcenter.get("vms") or {}

    if infra.get("totalHosts") is not None:
        summary["hosts"] = infra["totalHosts"]
    if vms.get("total") is not None:
        summary["vms"] = vms["total"]
    if isinstance(infra.get("networks"), list):
        summary["networks"] = len(infra["networks"])
    if isinstance(infra.get("datastores"), list):
        summary["datastores"] = len(infra["datastores"])

    created_at = _parse_timestamp(snapshot.get("createdAt"))
    if created_at is not None:
        reference = _parse_timestamp(now) if now else datetime.now(timezone.utc)
        summary["lastUpdated"] = _format_last_updated(created_at, reference)

    return summary


def select_inventory(document: Any) -> Any:
    """
    Pick the inventory to export from a loaded document.

    Assessment documents (with ``snapshots``) resolve to their latest snapshot.
    Anything else (a snapshot, a source with an inventory, a bare inventory) is
    returned as-is and left for normalize_inventory() to judge.

    Args:
        document: Parsed assessment, source, snapshot or inventory

    Returns:
        Inventory-like value, or None if an assessment has no snapshots
    """
    if isinstance(document, Mapping) and "snapshots" in document:
        return latest_snapshot(document.get("snapshots"))

    return document
