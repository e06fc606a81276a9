"""Parameters used to start a raft peer."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from raftcore.errors import ConfigInvalid

INVALID_ID = 0
_HEARTBEAT_TICK = 2


class ReadOnlyOption(Enum):
    """How read-only queries are served."""

    SAFE = "safe"
    LEASE_BASED = "lease_based"


@dataclass
class Config:
    """Configuration of a raft peer."""

    id: int = 0
    election_tick: int = _HEARTBEAT_TICK * 10
    heartbeat_tick: int = _HEARTBEAT_TICK
    applied: int = 0
    max_size_per_msg: int = 0
    max_inflight_msgs: int = 256
    check_quorum: bool = False
    pre_vote: bool = False
    min_election_tick: int = 0
    max_election_tick: int = 0
    read_only_option: ReadOnlyOption = ReadOnlyOption.SAFE
    skip_bcast_commit: bool = False
    tag: str = ""
    batch_append: bool = False

    def min_timeout(self) -> int:
        """The minimum number of ticks before an election."""
        return self.min_election_tick or self.election_tick

    def max_timeout(self) -> int:
        """The maximum number of ticks before an election."""
        return self.max_election_tick or 2 * self.election_tick

    def validate(self) -> None:
        """Raise ConfigInvalid if the configuration cannot be used."""
        if self.id == INVALID_ID:
            raise ConfigInvalid("invalid node id")
        if self.heartbeat_tick == 0:
            raise ConfigInvalid("heartbeat tick must greater than 0")
        if self.election_tick <= self.heartbeat_tick:
            raise ConfigInvalid("election tick must be greater than heartbeat tick")

        min_timeout = self.min_timeout()
        max_timeout = self.max_timeout()
        if min_timeout < self.election_tick:
            raise ConfigInvalid(
                f"min election tick {min_timeout} must not be less than "
                f"election_tick {self.election_tick}"
            )
        if min_timeout >= max_timeout:
            raise ConfigInvalid(
                f"min election tick {min_timeout} should be less than "
                f"max election tick {max_timeout}"
            )
        if self.max_inflight_msgs == 0:
            raise ConfigInvalid("max inflight messages must be greater than 0")
        if self.read_only_option is ReadOnlyOption.LEASE_BASED and not self.check_quorum:
            raise ConfigInvalid("read_only_option == LeaseBased requires check_quorum == true")


def new_config(id: int) -> Config:
    """Create a default configuration for the peer ``id``, tagged with its id."""
    return Config(id=id, tag=str(id))