"""
Chart data derivation.

Turns a canonical inventory into the aggregates the report charts and tables
are drawn from.
"""

import logging
import math
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from assessment_export.inventory.normalize import normalize_inventory

logger = logging.getLogger(__name__)

# Recommended capacity = actual usage plus headroom
CPU_MARGIN = 1.2
MEMORY_MARGIN = 1.25
STORAGE_MARGIN = 1.15

MAX_OS_ENTRIES = 8


@dataclass
class ChartData:
    """Report-ready aggregates derived from one inventory."""

    power_state_data: list[tuple[str, int]] = field(default_factory=list)
    resource_data: list[tuple[str, float, int]] = field(default_factory=list)
    os_data: list[tuple[str, int]] = field(default_factory=list)
    warnings_data: list[tuple[str, int]] = field(default_factory=list)
    storage_labels: list[str] = field(default_factory=list)
    storage_used_data: list[float] = field(default_factory=list)
    storage_total_data: list[float] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Serialize with the camelCase keys used by the report scripts."""
        return {
            "powerStateData": [list(row) for row in self.power_state_data],
            "resourceData": [list(row) for row in self.resource_data],
            "osData": [list(row) for row in self.os_data],
            "warningsData": [list(row) for row in self.warnings_data],
            "storageLabels": list(self.storage_labels),
            "storageUsedData": list(self.storage_used_data),
            "storageTotalData": list(self.storage_total_data),
        }


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _total(resource: Any) -> float:
    if isinstance(resource, Mapping):
        return resource.get("total") or 0
    return 0


def extract_os_data(vms: Mapping[str, Any]) -> list[tuple[str, int]]:
    """
    Extract (name, count) rows for operating systems.

    The ``osInfo`` map (``name -> {count, supported}``) is preferred when it has
    entries; otherwise the legacy ``os`` map (``name -> count``) is used. Rows
    keep the map's iteration order.

    Args:
        vms: VMs section of a canonical inventory

    Returns:
        List of (os_name, count) tuples, empty if neither map has entries

    Example:
        >>> extract_os_data({"osInfo": {}, "os": {"CentOS 7": 4}})
        [('CentOS 7', 4)]
    """
    os_info = vms.get("osInfo")
    if os_info:
        return [(name, info.get("count", 0)) for name, info in os_info.items()]

    legacy_os = vms.get("os")
    if legacy_os:
        return [(name, count) for name, count in legacy_os.items()]

    return []


def transform(inventory_like: Any) -> ChartData:
    """
    Derive chart data from any accepted inventory shape.

    Args:
        inventory_like: Snapshot, inventory, or canonical mapping

    Returns:
        ChartData with power states, resource margins, top operating systems,
        migration warnings and per-datastore storage usage

    Raises:
        InvalidInventoryShapeError: If the inventory shape is not recognized

    Example:
        >>> data = transform({"infra": {}, "vms": {"cpuCores": {"total": 100}}})
        >>> data.resource_data[0]
        ('CPU Cores', 100, 120)
    """
    inventory = normalize_inventory(inventory_like)
    infra, vms = inventory.infra, inventory.vms

    power_states = vms.get("powerStates") or {}
    power_state_data = [
        ("Powered On", power_states.get("poweredOn") or 0),
        ("Powered Off", power_states.get("poweredOff") or 0),
        ("Suspended", power_states.get("suspended") or 0),
    ]

    cpu = _total(vms.get("cpuCores"))
    memory = _total(vms.get("ramGB"))
    storage = _total(vms.get("diskGB"))
    resource_data = [
        ("CPU Cores", cpu, _round_half_up(cpu * CPU_MARGIN)),
        ("Memory GB", memory, _round_half_up(memory * MEMORY_MARGIN)),
        ("Storage GB", storage, _round_half_up(storage * STORAGE_MARGIN)),
    ]

    os_data = sorted(extract_os_data(vms), key=lambda row: row[1], reverse=True)
    os_data = os_data[:MAX_OS_ENTRIES]

    warnings_data = [
        (warning.get("label"), warning.get("count"))
        for warning in vms.get("migrationWarnings") or []
    ]

    datastores = infra.get("datastores") or []
    storage_labels = [f"{ds.get('vendor')} {ds.get('type')}" for ds in datastores]
    storage_total_data = [ds.get("totalCapacityGB") or 0 for ds in datastores]
    storage_used_data = [
        total - (ds.get("freeCapacityGB") or 0)
        for total, ds in zip(storage_total_data, datastores)
    ]

    logger.debug(
        f"Chart data: {len(os_data)} OS rows, {len(warnings_data)} warnings, "
        f"{len(datastores)} datastores"
    )

    return ChartData(
        power_state_data=power_state_data,
        resource_data=resource_data,
        os_data=os_data,
        warnings_data=warnings_data,
        storage_labels=storage_labels,
        storage_used_data=storage_used_data,
        storage_total_data=storage_total_data,
    )
