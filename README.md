# raftcore

Building blocks for a Raft consensus implementation, in pure Python with no
third-party dependencies.

## What is inside

- `raftcore.eraftpb` holds the wire types. These are the dataclasses `Entry`,
  `Snapshot`, `SnapshotMetadata`, `Message`, `HardState`, `ConfState` and
  `ConfChange`, and the `EntryType`, `MessageType` and `ConfChangeType` enums.
  `Message` names its sender field `from_`. `encode(message)` writes a message
  in protocol buffer wire format. `decode(message_type, data)` reads one back.
  Encoding a value that does not fit its field raises `ProstEncodeError`.
  Malformed input raises `ProstDecodeError`. Passing a type that is not one of
  these messages raises `TypeError`.
- `raftcore.errors` holds the exceptions. Raft errors derive from `RaftError`:
  `ConfigInvalid`, `Exists`, `NotExists`, `ViolatesContract`,
  `NoPendingMembershipChange`, `StoreError`, `IoError` and others. Storage
  failures derive from `StorageError`: `Compacted`, `Unavailable`,
  `SnapshotOutOfDate`, `SnapshotTemporarilyUnavailable` and
  `OtherStorageError`. A `StoreError` wraps a storage failure. Errors without
  data compare equal by type. `ConfigInvalid` errors compare equal by their
  description. `IoError`s compare equal by the type and errno of the wrapped
  error.
- `raftcore.config` holds `Config`, the parameters of a peer, and
  `ReadOnlyOption`. `new_config(id)` returns the defaults tagged with the id.
  `Config.min_timeout()` and `Config.max_timeout()` give the election timeout
  range. When the explicit settings are 0, they fall back to `election_tick`
  and `2 * election_tick`. `Config.validate()` raises `ConfigInvalid` on a bad
  configuration.
- `raftcore.log_unstable` holds `Unstable`: log entries and a snapshot not yet
  written to storage. It provides `maybe_first_index`, `maybe_last_index`,
  `maybe_term`, `stable_to`, `stable_snap_to`, `restore`,
  `truncate_and_append` and `slice`. An inverted range in `slice` raises
  `ValueError`. A range outside the held entries raises `IndexError`.
- `raftcore.inflights` holds `Inflights`: a ring buffer of the last indexes of
  in-flight append messages. Adding to a full buffer raises `RuntimeError`.
- `raftcore.progress` holds `Progress` and `ProgressState`, the leader's view of
  how far a follower has replicated. The states are probe, replicate and
  snapshot.
- `raftcore.configuration` holds `Configuration` (voter and learner sets),
  `CandidacyStatus` and `majority(total)`.
- `raftcore.progress_set` holds `ProgressSet`: the progress of every peer
  together with the current and any pending configuration. It supports
  joint-consensus membership changes. `restore_snapmeta(meta, next_idx,
  max_inflight)` builds a `ProgressSet` from snapshot metadata.

## Install

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Example

```python
from raftcore.config import new_config
from raftcore.configuration import Configuration
from raftcore.progress import Progress
from raftcore.progress_set import ProgressSet

config = new_config(1)
config.validate()

prs = ProgressSet()
prs.insert_voter(1, Progress(next_idx=1, ins_size=config.max_inflight_msgs))
prs.insert_voter(2, Progress(next_idx=1, ins_size=config.max_inflight_msgs))

# Joint consensus: replace voter 2 with voter 3, add learner 4.
prs.begin_membership_change(
    Configuration(voters={1, 3}, learners={4}),
    Progress(next_idx=1, ins_size=config.max_inflight_msgs),
)
assert prs.is_in_membership_change()
assert prs.voter_ids() == {1, 2, 3}
prs.finalize_membership_change()
assert prs.voter_ids() == {1, 3}
assert prs.learner_ids() == {4}
```

Errors are raised as exceptions:

```python
from raftcore.errors import Exists

try:
    prs.insert_voter(1, Progress(next_idx=1, ins_size=256))
except Exists as err:
    print(err)  # The node 1 already exists in the voters set.
```

Messages round-trip through the wire format:

```python
from raftcore.eraftpb import Entry, EntryType, decode, encode

entry = Entry(entry_type=EntryType.ENTRY_NORMAL, term=2, index=7, data=b"put 1 x")
assert decode(Entry, encode(entry)) == entry
```

## What it does not do

This package provides the data structures only. It has no election or
replication state machine, and no node that ticks, steps messages or produces
ready states. It has no persistent or in-memory log storage and no network
transport. A complete Raft peer has to be built on top of these pieces.