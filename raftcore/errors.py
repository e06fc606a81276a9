"""Exceptions raised by the raft core."""

from __future__ import annotations


class RaftError(Exception):
    """Base class of every raft error."""


class StorageError(Exception):
    """Base class of errors reported by a log storage."""


class Compacted(StorageError):
    """The storage was compacted and is not accessible."""

    def __init__(self) -> None:
        super().__init__("log compacted")

    def __eq__(self, other: object) -> bool:
        return type(other) is type(self)

    def __hash__(self) -> int:
        return hash(type(self))


class Unavailable(StorageError):
    """The log is not available."""

    def __init__(self) -> None:
        super().__init__("log unavailable")

    def __eq__(self, other: object) -> bool:
        return type(other) is type(self)

    def __hash__(self) -> int:
        return hash(type(self))


class SnapshotOutOfDate(StorageError):
    """The snapshot is out of date."""

    def __init__(self) -> None:
        super().__init__("snapshot out of date")

    def __eq__(self, other: object) -> bool:
        return type(other) is type(self)

    def __hash__(self) -> int:
        return hash(type(self))


class SnapshotTemporarilyUnavailable(StorageError):
    """The snapshot is being created."""

    def __init__(self) -> None:
        super().__init__("snapshot is temporarily unavailable")

    def __eq__(self, other: object) -> bool:
        return type(other) is type(self)

    def __hash__(self) -> int:
        return hash(type(self))


class OtherStorageError(StorageError):
    """Some other storage failure, wrapping the original exception."""

    def __init__(self, error: BaseException) -> None:
        super().__init__(f"unknown error {error!r}")
        self.error = error
        self.__cause__ = error


class IoError(RaftError):
    """An I/O failure; two of them are equal when their kinds match."""

    def __init__(self, error: BaseException) -> None:
        super().__init__(str(error))
        self.error = error
        self.__cause__ = error

    def _kind(self) -> tuple:
        return type(self.error), getattr(self.error, "errno", None)

    def __eq__(self, other: object) -> bool:
        return isinstance(other, IoError) and self._kind() == other._kind()

    def __hash__(self) -> int:
        return hash(self._kind())


class StoreError(RaftError):
    """A storage error surfaced through raft."""

    def __init__(self, error: StorageError) -> None:
        super().__init__(str(error))
        self.error = error
        self.__cause__ = error

    def __eq__(self, other: object) -> bool:
        return isinstance(other, StoreError) and self.error == other.error

    def __hash__(self) -> int:
        return hash((StoreError, type(self.error)))


class _Unit(RaftError):
    _message = ""

    def __init__(self) -> None:
        super().__init__(self._message)

    def __eq__(self, other: object) -> bool:
        return type(other) is type(self)

    def __hash__(self) -> int:
        return hash(type(self))


class StepLocalMsg(_Unit):
    """Raft cannot step a local message."""

    _message = "raft: cannot step raft local message"


class StepPeerNotFound(_Unit):
    """The raft peer was not found and thus cannot step."""

    _message = "raft: cannot step as peer not found"


class ProposalDropped(_Unit):
    """The proposal was dropped."""

    _message = "raft: proposal dropped"


class ConfigInvalid(RaftError):
    """The configuration is invalid."""

    def __init__(self, desc: str) -> None:
        super().__init__(desc)
        self.desc = desc

    def __eq__(self, other: object) -> bool:
        return isinstance(other, ConfigInvalid) and self.desc == other.desc

    def __hash__(self) -> int:
        return hash((ConfigInvalid, self.desc))


class ProstEncodeError(RaftError):
    """Encoding a message failed."""

    def __init__(self, detail: str) -> None:
        super().__init__(f"prost encode error {detail}")
        self.detail = detail


class ProstDecodeError(RaftError):
    """Decoding a message failed."""

    def __init__(self, detail: str) -> None:
        super().__init__(f"prost decode error {detail}")
        self.detail = detail


class Exists(RaftError):
    """The node exists in a set, but should not."""

    def __init__(self, id: int, set_name: str) -> None:
        super().__init__(f"The node {id} already exists in the {set_name} set.")
        self.id = id
        self.set_name = set_name


class NotExists(RaftError):
    """The node does not exist in a set, but should."""

    def __init__(self, id: int, set_name: str) -> None:
        super().__init__(f"The node {id} is not in the {set_name} set.")
        self.id = id
        self.set_name = set_name


class InvalidState(RaftError):
    """The action requires the node to be in a different role."""

    def __init__(self, role) -> None:
        name = getattr(role, "name", role)
        super().__init__(f"Cannot complete that action while in {name} role.")
        self.role = role


class NoPendingMembershipChange(RaftError):
    """A membership transition was finalised while none was pending."""

    def __init__(self) -> None:
        super().__init__(
            "No pending membership change. Create a pending transition with "
            "`Raft::propose_membership_change` on the leader."
        )


class ViolatesContract(RaftError):
    """An argument violates a calling contract."""

    def __init__(self, contract: str) -> None:
        super().__init__(f"An argument violate a calling contract: {contract}")
        self.contract = contract