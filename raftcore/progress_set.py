"""The leader's record of every peer's progress and the cluster membership."""

from __future__ import annotations

import copy
import logging
from collections.abc import Mapping
from typing import Iterable, Iterator, Optional, Union

from raftcore.configuration import CandidacyStatus, Configuration
from raftcore.eraftpb import ConfState, SnapshotMetadata
from raftcore.errors import Exists, NoPendingMembershipChange, NotExists, ViolatesContract
from raftcore.progress import Progress

_PENDING_CHANGE = "There is a pending membership change."

ConfigurationLike = Union[Configuration, ConfState, tuple]


def _as_configuration(value: ConfigurationLike) -> Configuration:
    if isinstance(value, Configuration):
        return Configuration(value.voters, value.learners)
    if isinstance(value, ConfState):
        return Configuration.from_conf_state(value)
    voters, learners = value
    return Configuration(voters, learners)


def _committed_index(configuration: Configuration, progress: dict[int, Progress]) -> int:
    matched = sorted((progress[id].matched for id in configuration.voters), reverse=True)
    return matched[len(matched) // 2]


class ProgressSet:
    """Progress of every known peer, along with the current and pending configurations."""

    def __init__(self, logger: Optional[logging.Logger] = None) -> None:
        self._progress: dict[int, Progress] = {}
        self.configuration = Configuration()
        self.next_configuration: Optional[Configuration] = None
        self._logger = logger or logging.getLogger(__name__)

    def voters(self) -> Iterator[tuple[int, Progress]]:
        """The ids and progress of all known voters, including pending ones."""
        ids = self.voter_ids()
        return ((id, pr) for id, pr in self._progress.items() if id in ids)

    def learners(self) -> Iterator[tuple[int, Progress]]:
        """The ids and progress of all known learners, including pending ones."""
        ids = self.learner_ids()
        return ((id, pr) for id, pr in self._progress.items() if id in ids)

    def voter_ids(self) -> set[int]:
        """Ids of the voters of the current and any pending configuration."""
        if self.next_configuration is not None:
            return self.configuration.voters | self.next_configuration.voters
        return set(self.configuration.voters)

    def learner_ids(self) -> set[int]:
        """Ids of the learners of the current and any pending configuration."""
        if self.next_configuration is not None:
            return self.configuration.learners | self.next_configuration.learners
        return set(self.configuration.learners)

    def get(self, id: int) -> Optional[Progress]:
        """The progress of ``id``, or None if the peer is unknown."""
        return self._progress.get(id)

    def items(self) -> Iterator[tuple[int, Progress]]:
        """Every peer id together with its progress."""
        return iter(list(self._progress.items()))

    def __len__(self) -> int:
        return len(self._progress)

    def _check_insertable(self, id: int) -> None:
        if id in self.learner_ids():
            raise Exists(id, "learners")
        if id in self.voter_ids():
            raise Exists(id, "voters")
        if self.is_in_membership_change():
            raise ViolatesContract(_PENDING_CHANGE)

    def insert_voter(self, id: int, pr: Progress) -> None:
        """Add a voter; raise if it is already known or a membership change is pending."""
        self._logger.debug("Inserting voter with id %s", id)
        self._check_insertable(id)
        self.configuration.voters.add(id)
        self._progress[id] = pr
        self._assert_consistent()

    def insert_learner(self, id: int, pr: Progress) -> None:
        """Add a learner; raise if it is already known or a membership change is pending."""
        self._logger.debug("Inserting learner with id %s", id)
        self._check_insertable(id)
        self.configuration.learners.add(id)
        self._progress[id] = pr
        self._assert_consistent()

    def remove(self, id: int) -> Optional[Progress]:
        """Remove a peer and return its progress, if it had any."""
        self._logger.debug("Removing peer with id %s", id)
        if self.is_in_membership_change():
            raise ViolatesContract(_PENDING_CHANGE)
        self.configuration.learners.discard(id)
        self.configuration.voters.discard(id)
        removed = self._progress.pop(id, None)
        self._assert_consistent()
        return removed

    def promote_learner(self, id: int) -> None:
        """Turn the learner ``id`` into a voter."""
        self._logger.debug("Promoting peer with id %s", id)
        if self.is_in_membership_change():
            raise ViolatesContract(_PENDING_CHANGE)
        if id not in self.configuration.learners:
            raise NotExists(id, "learners")
        self.configuration.learners.discard(id)
        if id in self.configuration.voters:
            raise Exists(id, "voters")
        self.configuration.voters.add(id)
        self._assert_consistent()

    def _assert_consistent(self) -> None:
        known = len(self.voter_ids()) + len(self.learner_ids())
        if known != len(self._progress):
            raise RuntimeError(
                f"progress set holds {len(self._progress)} peers but the "
                f"configuration names {known}"
            )

    def maximal_committed_index(self) -> int:
        """The highest index a quorum has matched, e.g. 2 for matches [2, 2, 2, 4, 5]."""
        mci = _committed_index(self.configuration, self._progress)
        if self.next_configuration is not None:
            mci = min(mci, _committed_index(self.next_configuration, self._progress))
        return mci

    def candidacy_status(
        self, votes: Union[Mapping[int, bool], Iterable[tuple[int, bool]]]
    ) -> CandidacyStatus:
        """Whether the given votes won, lost or leave open the election."""
        pairs = votes.items() if isinstance(votes, Mapping) else votes
        accepts: set[int] = set()
        rejects: set[int] = set()
        for id, accepted in pairs:
            (accepts if accepted else rejects).add(id)

        current = self.configuration
        following = self.next_configuration
        if following is not None:
            if following.has_quorum(accepts) and current.has_quorum(accepts):
                return CandidacyStatus.ELECTED
            if following.has_quorum(rejects) or current.has_quorum(rejects):
                return CandidacyStatus.INELIGIBLE
        else:
            if current.has_quorum(accepts):
                return CandidacyStatus.ELECTED
            if current.has_quorum(rejects):
                return CandidacyStatus.INELIGIBLE
        return CandidacyStatus.ELIGIBLE

    def quorum_recently_active(self, perspective_of: int) -> bool:
        """Whether a quorum was recently active; clears every peer's activity flag."""
        active: set[int] = set()
        for id, pr in self.voters():
            if id == perspective_of:
                active.add(id)
                continue
            if pr.recent_active:
                active.add(id)
            pr.recent_active = False
        for _, pr in self.learners():
            pr.recent_active = False
        return self.has_quorum(active)

    def has_quorum(self, potential_quorum: Iterable[int]) -> bool:
        """Whether the ids form a quorum of the current and any pending configuration."""
        members = set(potential_quorum)
        if not self.configuration.has_quorum(members):
            return False
        return self.next_configuration is None or self.next_configuration.has_quorum(members)

    def is_in_membership_change(self) -> bool:
        """Whether a joint-consensus transition is under way."""
        return self.next_configuration is not None

    def begin_membership_change(self, next: ConfigurationLike, progress: Progress) -> None:
        """Enter joint consensus towards ``next``; new peers start from a copy of ``progress``.

        Voters may not be demoted to learners, no node may be both, and the
        voter set may not be empty.
        """
        target = _as_configuration(next)
        target.valid()
        demoted = self.configuration.voters & target.learners
        if demoted:
            raise Exists(min(demoted), "learners")
        self._logger.debug("Beginning membership change to %r", target)

        template = copy.deepcopy(progress)
        template.recent_active = True
        template.paused = False
        for id in list(target.voters) + list(target.learners):
            if id not in self._progress:
                self._progress[id] = copy.deepcopy(template)
        self.next_configuration = target

    def finalize_membership_change(self) -> None:
        """Leave joint consensus, keeping only the pending configuration."""
        following = self.next_configuration
        if following is None:
            raise NoPendingMembershipChange()
        self.next_configuration = None
        dropped = (self.configuration.voters - following.voters) | (
            self.configuration.learners - following.learners
        )
        for id in dropped:
            self._progress.pop(id, None)
        self.configuration = following
        self._logger.debug("Finalizing membership change to %r", self.configuration)


def restore_snapmeta(
    meta: SnapshotMetadata,
    next_idx: int,
    max_inflight: int,
) -> ProgressSet:
    """Build a progress set for the membership recorded in snapshot metadata."""
    prs = ProgressSet()
    conf_state = meta.conf_state or ConfState()
    for id in conf_state.nodes:
        prs._progress[id] = Progress(next_idx, max_inflight)
        prs.configuration.voters.add(id)
    for id in conf_state.learners:
        prs._progress[id] = Progress(next_idx, max_inflight)
        prs.configuration.learners.add(id)

    if meta.pending_membership_change_index != 0:
        pending = meta.pending_membership_change or ConfState()
        following = Configuration()
        for id in pending.nodes:
            prs._progress[id] = Progress(next_idx, max_inflight)
            following.voters.add(id)
        for id in pending.learners:
            prs._progress[id] = Progress(next_idx, max_inflight)
            following.learners.add(id)
        prs.next_configuration = following
    prs._assert_consistent()
    return prs