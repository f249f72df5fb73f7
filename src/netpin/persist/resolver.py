"""Detect interface name drift between a pin snapshot and the current state.

The MAC address is the stable key: when a NIC known under one name in the
pin snapshot now shows up under another name, the NIC should get its old
name back.
"""
import logging
from collections import Counter
from dataclasses import dataclass

from ..state import InterfaceSnapshot

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RebindingInstruction:
    """Bind the NIC with `mac_address` to `desired_name`."""
    mac_address: str
    desired_name: str


def resolve_rebindings(
    pin_state: InterfaceSnapshot,
    cur_state: InterfaceSnapshot,
) -> list[RebindingInstruction]:
    """Compute the rebinding instructions for drifted NIC names.

    For every current Ethernet interface with a MAC address:
    - if the pin snapshot has an interface of the same name and type,
      nothing drifted;
    - otherwise every pin Ethernet interface with the same MAC and a
      different name yields an instruction to restore the pinned name.

    A pin snapshot with duplicate MACs yields one instruction per match.
    """
    pin_ethernet = pin_state.ethernet()

    duplicates = [
        mac for mac, count in Counter(
            i.mac_address for i in pin_ethernet if i.mac_address
        ).items()
        if count > 1
    ]
    for mac in duplicates:
        logger.warning(f"Pin state lists MAC {mac} on more than one interface")

    instructions = []
    for cur_iface in cur_state.ethernet():
        cur_mac = cur_iface.mac_address
        if cur_mac is None:
            continue

        # Same name already known in the old state: nothing to do
        if pin_state.get_iface(cur_iface.name, cur_iface.iface_type) is not None:
            continue

        for pin_iface in pin_ethernet:
            if pin_iface.mac_address == cur_mac and pin_iface.name != cur_iface.name:
                logger.info(
                    f"Interface {cur_iface.name} with MAC {cur_mac} was "
                    f"previously named {pin_iface.name}"
                )
                instructions.append(
                    RebindingInstruction(mac_address=cur_mac, desired_name=pin_iface.name)
                )

    return instructions
