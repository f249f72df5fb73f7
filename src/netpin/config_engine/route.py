"""Fold changed routes into the apply projections of their interfaces."""
import copy
import logging

from .merge import MergedNetworkState

logger = logging.getLogger(__name__)


def store_route_config(merged_state: MergedNetworkState) -> None:
    """Update the apply projection of every interface whose routes changed.

    Routes are never applied without their address family context, so
    the merged IPv4/IPv6 configuration is copied along with them. An
    interface missing from `routes.indexed` gets an empty route list.
    Interfaces outside the merge are skipped, never added.
    """
    if not merged_state.routes.is_changed():
        return

    kernel_ifaces = merged_state.interfaces.kernel_ifaces
    for iface_name in merged_state.routes.route_changed_ifaces:
        rts = merged_state.routes.indexed.get(iface_name, [])

        iface = kernel_ifaces.get(iface_name)
        if iface is None:
            logger.debug(f"Route change for {iface_name} outside of apply scope, skipping")
            continue

        # Also creates the projection of an interface flagged without one
        iface.mark_as_changed()

        apply_iface = iface.for_apply
        apply_iface.ipv4 = copy.deepcopy(iface.merged.ipv4)
        apply_iface.ipv6 = copy.deepcopy(iface.merged.ipv6)
        apply_iface.routes = list(rts)
        logger.info(f"Interface {iface_name}: {len(rts)} route(s) to apply")
