"""Cluster membership as sets of voters and learners."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import AbstractSet, Iterable

from raftcore.eraftpb import ConfState
from raftcore.errors import ConfigInvalid, Exists


def majority(total: int) -> int:
    """The smallest number of members that forms a majority of ``total``."""
    return total // 2 + 1


@dataclass
class Configuration:
    """The voter and learner sets of a cluster, optimised for membership tests."""

    voters: set[int] = field(default_factory=set)
    learners: set[int] = field(default_factory=set)

    def __post_init__(self) -> None:
        self.voters = set(self.voters)
        self.learners = set(self.learners)

    @staticmethod
    def from_conf_state(conf_state: ConfState) -> Configuration:
        """Build a configuration from the wire representation."""
        return Configuration(conf_state.nodes, conf_state.learners)

    def to_conf_state(self) -> ConfState:
        """The wire representation of this configuration, ids in ascending order."""
        return ConfState(nodes=sorted(self.voters), learners=sorted(self.learners))

    def valid(self) -> None:
        """Raise if a node is both voter and learner, or if there are no voters."""
        overlap = self.voters & self.learners
        if overlap:
            raise Exists(min(overlap), "learners")
        if not self.voters:
            raise ConfigInvalid("There must be at least one voter.")

    def has_quorum(self, potential_quorum: AbstractSet[int] | Iterable[int]) -> bool:
        """Whether the given ids include a majority of the voters."""
        members = set(potential_quorum)
        return len(self.voters & members) >= majority(len(self.voters))

    def contains(self, id: int) -> bool:
        """Whether ``id`` is a voter or a learner."""
        return id in self.voters or id in self.learners


class CandidacyStatus(Enum):
    """The state of an election as seen by a candidate."""

    ELECTED = "elected"
    ELIGIBLE = "eligible"
    INELIGIBLE = "ineligible"