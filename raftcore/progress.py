"""The leader's view of how far a follower has replicated the log."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from raftcore.inflights import Inflights


class ProgressState(Enum):
    """Replication mode of a follower."""

    PROBE = "probe"
    REPLICATE = "replicate"
    SNAPSHOT = "snapshot"


@dataclass(init=False)
class Progress:
    """Replication progress of one peer.

    In ``PROBE`` the leader sends at most one append per heartbeat interval;
    in ``REPLICATE`` it advances ``next_idx`` optimistically, bounded by the
    ``ins`` window; in ``SNAPSHOT`` it waits for ``pending_snapshot`` to land.
    """

    matched: int
    next_idx: int
    state: ProgressState
    paused: bool
    pending_snapshot: int
    recent_active: bool
    ins: Inflights

    def __init__(self, next_idx: int, ins_size: int) -> None:
        self.matched = 0
        self.next_idx = next_idx
        self.state = ProgressState.PROBE
        self.paused = False
        self.pending_snapshot = 0
        self.recent_active = False
        self.ins = Inflights(ins_size)

    def _reset_state(self, state: ProgressState) -> None:
        self.paused = False
        self.pending_snapshot = 0
        self.state = state
        self.ins.reset()

    def reset(self, next_idx: int) -> None:
        """Return to a fresh probing state starting at ``next_idx``."""
        self.matched = 0
        self.next_idx = next_idx
        self.state = ProgressState.PROBE
        self.paused = False
        self.pending_snapshot = 0
        self.recent_active = False
        self.ins.reset()

    def become_probe(self) -> None:
        """Switch to probing; after a snapshot, probe past the snapshot index."""
        if self.state is ProgressState.SNAPSHOT:
            pending_snapshot = self.pending_snapshot
            self._reset_state(ProgressState.PROBE)
            self.next_idx = max(self.matched + 1, pending_snapshot + 1)
        else:
            self._reset_state(ProgressState.PROBE)
            self.next_idx = self.matched + 1

    def become_replicate(self) -> None:
        """Switch to optimistic replication."""
        self._reset_state(ProgressState.REPLICATE)
        self.next_idx = self.matched + 1

    def become_snapshot(self, snapshot_idx: int) -> None:
        """Switch to waiting for the snapshot at ``snapshot_idx``."""
        self._reset_state(ProgressState.SNAPSHOT)
        self.pending_snapshot = snapshot_idx

    def snapshot_failure(self) -> None:
        """Forget the pending snapshot after it failed."""
        self.pending_snapshot = 0

    def maybe_snapshot_abort(self) -> bool:
        """Whether the pending snapshot is no longer needed."""
        return self.state is ProgressState.SNAPSHOT and self.matched >= self.pending_snapshot

    def maybe_update(self, n: int) -> bool:
        """Record that the peer matched up to ``n``; False if the news is stale."""
        need_update = self.matched < n
        if need_update:
            self.matched = n
            self.resume()
        if self.next_idx < n + 1:
            self.next_idx = n + 1
        return need_update

    def optimistic_update(self, n: int) -> None:
        """Advance the next index past ``n`` without waiting for a reply."""
        self.next_idx = n + 1

    def maybe_decr_to(self, rejected: int, last: int) -> bool:
        """Step back after a rejection; False if the rejection is out of order."""
        if self.state is ProgressState.REPLICATE:
            if rejected <= self.matched:
                return False
            self.next_idx = self.matched + 1
            return True

        if self.next_idx == 0 or self.next_idx - 1 != rejected:
            return False

        self.next_idx = max(min(rejected, last + 1), 1)
        self.resume()
        return True

    def is_paused(self) -> bool:
        """Whether sending to this peer is currently held back."""
        if self.state is ProgressState.PROBE:
            return self.paused
        if self.state is ProgressState.REPLICATE:
            return self.ins.full()
        return True

    def resume(self) -> None:
        """Allow sending again."""
        self.paused = False

    def pause(self) -> None:
        """Hold sending back."""
        self.paused = True

    def update_state(self, last: int) -> None:
        """Account for an append ending at ``last`` having been sent."""
        if self.state is ProgressState.REPLICATE:
            self.optimistic_update(last)
            self.ins.add(last)
        elif self.state is ProgressState.PROBE:
            self.pause()
        else:
            raise RuntimeError(f"updating progress state in unhandled state {self.state!r}")