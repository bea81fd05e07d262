"""
Epoch schedule.

With warmup enabled, a young cluster starts with short epochs: epoch 0 has
`minimum_slots_per_epoch` slots and every following epoch doubles, as long as
the doubled length stays below the steady-state length. From
`first_normal_epoch` on, every epoch has exactly `slots_per_epoch` slots.

Example (floor 32, target 1024):

    epoch:  0   1    2    3    4    5     6     ...
    slots:  32  64   128  256  512  1024  1024  ...
"""

from __future__ import annotations

from cluster_genesis.config import MINIMUM_SLOTS_PER_EPOCH
from cluster_genesis.types import Boolean, Container, Uint64


class EpochSchedule(Container):
    """How slots are grouped into epochs for the lifetime of the cluster."""

    slots_per_epoch: Uint64
    """Steady-state slots per epoch."""

    leader_schedule_slot_offset: Uint64
    """How many slots before an epoch starts its leader schedule is computed."""

    warmup: Boolean
    """Whether the cluster starts with short, doubling epochs."""

    minimum_slots_per_epoch: Uint64
    """Slots in epoch 0 when warming up."""

    first_normal_epoch: Uint64
    """First epoch with `slots_per_epoch` slots."""

    first_normal_slot: Uint64
    """First slot of `first_normal_epoch`."""

    def get_slots_in_epoch(self, epoch: int) -> int:
        """Number of slots in `epoch`."""
        if epoch < int(self.first_normal_epoch):
            return int(self.minimum_slots_per_epoch) << epoch
        return int(self.slots_per_epoch)

    def get_first_slot_in_epoch(self, epoch: int) -> int:
        """First slot of `epoch`."""
        first_normal_epoch = int(self.first_normal_epoch)
        if epoch <= first_normal_epoch:
            return int(self.minimum_slots_per_epoch) * ((1 << epoch) - 1)
        return (epoch - first_normal_epoch) * int(self.slots_per_epoch) + int(
            self.first_normal_slot
        )

    def get_last_slot_in_epoch(self, epoch: int) -> int:
        """Last slot of `epoch`."""
        return self.get_first_slot_in_epoch(epoch) + self.get_slots_in_epoch(epoch) - 1

    def get_epoch_and_slot_index(self, slot: int) -> tuple[int, int]:
        """Epoch containing `slot` and the offset of `slot` within it."""
        first_normal_slot = int(self.first_normal_slot)
        if slot < first_normal_slot:
            # Warmup epoch e covers [floor * (2**e - 1), floor * (2**(e+1) - 1)).
            floor = int(self.minimum_slots_per_epoch)
            epoch = (slot // floor + 1).bit_length() - 1
            return epoch, slot - floor * ((1 << epoch) - 1)

        normal_slot_index = slot - first_normal_slot
        slots_per_epoch = int(self.slots_per_epoch)
        return (
            int(self.first_normal_epoch) + normal_slot_index // slots_per_epoch,
            normal_slot_index % slots_per_epoch,
        )

    def get_epoch(self, slot: int) -> int:
        """Epoch containing `slot`."""
        return self.get_epoch_and_slot_index(slot)[0]

    def epoch_lengths(self, count: int) -> list[int]:
        """Slot counts of the first `count` epochs."""
        return [self.get_slots_in_epoch(epoch) for epoch in range(count)]


def compute(
    warmup: bool,
    target_slots_per_epoch: int,
    minimum_slots_floor: int = MINIMUM_SLOTS_PER_EPOCH,
    leader_schedule_slot_offset: int | None = None,
) -> EpochSchedule:
    """
    Derive the epoch schedule.

    Args:
        warmup: Start with short, doubling epochs.
        target_slots_per_epoch: Steady-state epoch length.
        minimum_slots_floor: Length of epoch 0 when warming up.
        leader_schedule_slot_offset: Defaults to one full epoch.

    Raises:
        ValueError: If either length is zero or negative.
    """
    if target_slots_per_epoch <= 0:
        raise ValueError(f"target slots per epoch must be positive, got {target_slots_per_epoch}")
    if minimum_slots_floor <= 0:
        raise ValueError(f"minimum slots per epoch must be positive, got {minimum_slots_floor}")

    first_normal_epoch = 0
    if warmup:
        while minimum_slots_floor << first_normal_epoch < target_slots_per_epoch:
            first_normal_epoch += 1

    return EpochSchedule(
        slots_per_epoch=target_slots_per_epoch,
        leader_schedule_slot_offset=(
            target_slots_per_epoch
            if leader_schedule_slot_offset is None
            else leader_schedule_slot_offset
        ),
        warmup=warmup,
        minimum_slots_per_epoch=minimum_slots_floor,
        first_normal_epoch=first_normal_epoch,
        first_normal_slot=minimum_slots_floor * ((1 << first_normal_epoch) - 1),
    )
