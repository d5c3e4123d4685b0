"""
Inventory shape normalization.

Snapshots reach the exporter in several shapes depending on which collector
and API version produced them:

    {"infra": ..., "vms": ...}
    {"inventory": {"infra": ..., "vms": ...}}
    {"inventory": {"vcenter": {"infra": ..., "vms": ...}}}

normalize_inventory() picks exactly one of them and hands back the matched
sub-objects without copying.
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from assessment_export.exceptions import InvalidInventoryShapeError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CanonicalInventory:
    """The (infra, vms) pair of a single snapshot."""

    infra: Mapping[str, Any]
    vms: Mapping[str, Any]


def _pair(candidate: Any) -> CanonicalInventory | None:
    if not isinstance(candidate, Mapping):
        return None
    infra = candidate.get("infra")
    vms = candidate.get("vms")
    if infra is None or vms is None:
        return None
    return CanonicalInventory(infra=infra, vms=vms)


def _child(candidate: Any, key: str) -> Any:
    if isinstance(candidate, Mapping):
        return candidate.get(key)
    return None


def normalize_inventory(inventory_like: Any) -> CanonicalInventory:
    """
    Resolve an inventory-like value into its canonical (infra, vms) pair.

    Shapes are tried in a fixed priority order and the first one that provides
    both members wins:

    1. top-level ``infra`` / ``vms``
    2. ``inventory.infra`` / ``inventory.vms``
    3. ``inventory.vcenter.infra`` / ``inventory.vcenter.vms``

    Args:
        inventory_like: Snapshot, inventory, or canonical mapping

    Returns:
        CanonicalInventory referencing the matched mappings

    Raises:
        InvalidInventoryShapeError: If no shape matches

    Example:
        >>> snapshot = {"inventory": {"vcenter": {"infra": {}, "vms": {}}}}
        >>> normalize_inventory(snapshot).vms
        {}
    """
    inventory = _child(inventory_like, "inventory")
    candidates = (
        ("top-level", inventory_like),
        ("inventory", inventory),
        ("inventory.vcenter", _child(inventory, "vcenter")),
    )

    for shape, candidate in candidates:
        result = _pair(candidate)
        if result is not None:
            logger.debug(f"Resolved inventory from {shape} shape")
            return result

    raise InvalidInventoryShapeError()
