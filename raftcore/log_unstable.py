"""Log entries and snapshot that have not yet been written to storage."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Sequence

from raftcore.eraftpb import Entry, Snapshot, SnapshotMetadata


def _metadata(snap: Snapshot) -> SnapshotMetadata:
    return snap.metadata if snap.metadata is not None else SnapshotMetadata()


@dataclass
class Unstable:
    """Entries not yet persisted; ``entries[i]`` sits at log position ``i + offset``.

    ``offset`` may be below the highest index in storage, in which case the next
    write to storage may need to truncate the log before persisting these entries.
    """

    snapshot: Optional[Snapshot] = None
    entries: list[Entry] = field(default_factory=list)
    offset: int = 0
    tag: str = ""

    def maybe_first_index(self) -> Optional[int]:
        """The index of the first possible entry, if there is a snapshot."""
        if self.snapshot is None:
            return None
        return _metadata(self.snapshot).index + 1

    def maybe_last_index(self) -> Optional[int]:
        """The last index, if there is at least one entry or a snapshot."""
        if self.entries:
            return self.offset + len(self.entries) - 1
        if self.snapshot is None:
            return None
        return _metadata(self.snapshot).index

    def maybe_term(self, idx: int) -> Optional[int]:
        """The term of the entry at ``idx``, if known."""
        if idx < self.offset:
            if self.snapshot is None:
                return None
            meta = _metadata(self.snapshot)
            return meta.term if idx == meta.index else None
        last = self.maybe_last_index()
        if last is None or idx > last:
            return None
        return self.entries[idx - self.offset].term

    def stable_to(self, idx: int, term: int) -> None:
        """Move the stable offset up to ``idx`` if its entry has term ``term``."""
        found = self.maybe_term(idx)
        if found is None:
            return
        if found == term and idx >= self.offset:
            del self.entries[: idx + 1 - self.offset]
            self.offset = idx + 1

    def stable_snap_to(self, idx: int) -> None:
        """Drop the snapshot if its index is ``idx``."""
        if self.snapshot is not None and _metadata(self.snapshot).index == idx:
            self.snapshot = None

    def restore(self, snap: Snapshot) -> None:
        """Replace everything with ``snap`` without unpacking it."""
        self.entries.clear()
        self.offset = _metadata(snap).index + 1
        self.snapshot = snap

    def truncate_and_append(self, ents: Sequence[Entry]) -> None:
        """Append ``ents``, first truncating any overlapping local entries."""
        after = ents[0].index
        if after == self.offset + len(self.entries):
            self.entries.extend(ents)
        elif after <= self.offset:
            self.offset = after
            self.entries = list(ents)
        else:
            self.must_check_outofbounds(self.offset, after)
            del self.entries[after - self.offset :]
            self.entries.extend(ents)

    def slice(self, lo: int, hi: int) -> list[Entry]:
        """The entries in the index range ``[lo, hi)``."""
        self.must_check_outofbounds(lo, hi)
        return self.entries[lo - self.offset : hi - self.offset]

    def must_check_outofbounds(self, lo: int, hi: int) -> None:
        """Raise if ``[lo, hi)`` is inverted or outside the held entries."""
        if lo > hi:
            raise ValueError(f"{self.tag} invalid unstable.slice {lo} > {hi}")
        upper = self.offset + len(self.entries)
        if lo < self.offset or hi > upper:
            raise IndexError(
                f"{self.tag} unstable.slice[{lo}, {hi}] out of bound[{self.offset}, {upper}]"
            )