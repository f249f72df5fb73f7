"""Merged network state.

Combines the desired state of a config document with the current state
into per-interface records. Each `MergedInterface` carries a `for_apply`
projection: the part that is actually pushed to the network backend.
"""
import copy
from dataclasses import dataclass, field
from typing import Optional

from ..state import (
    InterfaceRecord,
    InterfaceSnapshot,
    InterfaceType,
    RouteEntry,
)


@dataclass
class MergedInterface:
    """Desired, current and merged view of one kernel interface."""
    merged: InterfaceRecord
    desired: Optional[InterfaceRecord] = None
    current: Optional[InterfaceRecord] = None
    for_apply: Optional[InterfaceRecord] = None
    changed: bool = False

    def is_changed(self) -> bool:
        return self.changed

    def mark_as_changed(self) -> None:
        """Flag for apply, creating an identity-only projection if needed."""
        if self.for_apply is None:
            apply_iface = self.merged.clone_name_type_only()
            apply_iface.state = "up"
            self.for_apply = apply_iface
        self.changed = True


def _differs(desired: InterfaceRecord, current: Optional[InterfaceRecord]) -> bool:
    """True if applying `desired` would change `current`."""
    if current is None:
        return True
    if desired.state and desired.state != current.state:
        return True
    if desired.mac_address and desired.mac_address != current.mac_address:
        return True
    if desired.ipv4 is not None and desired.ipv4 != current.ipv4:
        return True
    if desired.ipv6 is not None and desired.ipv6 != current.ipv6:
        return True
    return False


def merge_interface(
    desired: Optional[InterfaceRecord],
    current: Optional[InterfaceRecord],
) -> MergedInterface:
    """Merge the desired record over the current one."""
    if desired is None:
        return MergedInterface(merged=copy.deepcopy(current), current=current)

    base = current or desired
    iface_type = desired.iface_type
    raw_type = desired.raw_type
    # Type omitted in the document: keep what the kernel reports
    if current is not None and desired.raw_type == InterfaceType.OTHER.value:
        iface_type = current.iface_type
        raw_type = current.raw_type

    merged = InterfaceRecord(
        name=desired.name,
        iface_type=iface_type,
        mac_address=desired.mac_address or base.mac_address,
        ipv4=copy.deepcopy(desired.ipv4 if desired.ipv4 is not None else base.ipv4),
        ipv6=copy.deepcopy(desired.ipv6 if desired.ipv6 is not None else base.ipv6),
        state=desired.state or base.state,
        raw_type=raw_type,
    )

    for_apply = copy.deepcopy(desired)
    for_apply.iface_type = iface_type
    for_apply.raw_type = raw_type
    for_apply.routes = None

    return MergedInterface(
        merged=merged,
        desired=desired,
        current=current,
        for_apply=for_apply,
        changed=_differs(desired, current),
    )


@dataclass
class MergedInterfaces:
    """All kernel interfaces known to one apply cycle, by name."""
    kernel_ifaces: dict[str, MergedInterface] = field(default_factory=dict)

    def changed_for_apply(self) -> list[InterfaceRecord]:
        """Apply projections of the changed interfaces, in merge order."""
        return [
            iface.for_apply
            for iface in self.kernel_ifaces.values()
            if iface.is_changed() and iface.for_apply is not None
        ]

    @classmethod
    def build(
        cls,
        desired: InterfaceSnapshot,
        current: InterfaceSnapshot,
    ) -> "MergedInterfaces":
        current_map = {i.name: i for i in current.interfaces}
        desired_map = {i.name: i for i in desired.interfaces}

        kernel_ifaces = {}
        for name, cur_iface in current_map.items():
            kernel_ifaces[name] = merge_interface(desired_map.get(name), cur_iface)
        for name, des_iface in desired_map.items():
            if name not in kernel_ifaces:
                kernel_ifaces[name] = merge_interface(des_iface, None)

        return cls(kernel_ifaces=kernel_ifaces)


@dataclass
class MergedRoutes:
    """Routes after merging, indexed by next hop interface.

    An interface listed in `route_changed_ifaces` but missing from
    `indexed` has had all of its routes removed. `changed` is the global
    flag, set whenever any interface is listed.
    """
    indexed: dict[str, list[RouteEntry]] = field(default_factory=dict)
    route_changed_ifaces: list[str] = field(default_factory=list)
    changed: bool = False

    def __post_init__(self):
        if self.route_changed_ifaces:
            self.changed = True

    def is_changed(self) -> bool:
        return self.changed

    @classmethod
    def build(
        cls,
        desired_routes: list[RouteEntry],
        current_routes: list[RouteEntry],
    ) -> "MergedRoutes":
        current_idx: dict[str, list[RouteEntry]] = {}
        for route in current_routes:
            if route.next_hop_interface:
                current_idx.setdefault(route.next_hop_interface, []).append(route)

        wanted: dict[str, list[RouteEntry]] = {}
        absent: dict[str, list[RouteEntry]] = {}
        # Interfaces touched by the document, in document order
        touched: list[str] = []

        def touch(name: str) -> None:
            if name not in touched:
                touched.append(name)

        for route in desired_routes:
            if route.is_absent:
                # No interface given: applies to every interface
                targets = (
                    [route.next_hop_interface] if route.next_hop_interface
                    else list(current_idx)
                )
                for name in targets:
                    absent.setdefault(name, []).append(route)
                    touch(name)
            elif route.next_hop_interface:
                wanted.setdefault(route.next_hop_interface, []).append(route)
                touch(route.next_hop_interface)

        result = cls()
        for name in touched:
            cur = current_idx.get(name, [])
            kept = [
                r for r in cur
                if not any(a.matches(r) for a in absent.get(name, []))
            ]
            # Fields left out of the document (metric, table-id) match anything
            new = kept + [
                r for r in wanted.get(name, [])
                if not any(r.matches(k) for k in kept)
            ]
            if new != cur:
                result.route_changed_ifaces.append(name)
                result.changed = True
            if new:
                result.indexed[name] = new

        return result


@dataclass
class MergedNetworkState:
    """Everything one apply cycle pushes to the network backend."""
    interfaces: MergedInterfaces = field(default_factory=MergedInterfaces)
    routes: MergedRoutes = field(default_factory=MergedRoutes)

    @classmethod
    def build(
        cls,
        desired: InterfaceSnapshot,
        current: InterfaceSnapshot,
    ) -> "MergedNetworkState":
        return cls(
            interfaces=MergedInterfaces.build(desired, current),
            routes=MergedRoutes.build(desired.routes, current.routes),
        )
