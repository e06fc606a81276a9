"""Raft wire messages and their protocol buffer encoding."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, IntEnum, auto
from typing import Optional, Union

from raftcore.errors import ProstDecodeError, ProstEncodeError

_U64_LIMIT = 1 << 64


class EntryType(IntEnum):
    """Kind of change carried by a log entry."""

    ENTRY_NORMAL = 0
    ENTRY_CONF_CHANGE = 1


class MessageType(IntEnum):
    """Kind of a raft message."""

    MSG_HUP = 0
    MSG_BEAT = 1
    MSG_PROPOSE = 2
    MSG_APPEND = 3
    MSG_APPEND_RESPONSE = 4
    MSG_REQUEST_VOTE = 5
    MSG_REQUEST_VOTE_RESPONSE = 6
    MSG_SNAPSHOT = 7
    MSG_HEARTBEAT = 8
    MSG_HEARTBEAT_RESPONSE = 9
    MSG_UNREACHABLE = 10
    MSG_SNAP_STATUS = 11
    MSG_CHECK_QUORUM = 12
    MSG_TRANSFER_LEADER = 13
    MSG_TIMEOUT_NOW = 14
    MSG_READ_INDEX = 15
    MSG_READ_INDEX_RESP = 16
    MSG_REQUEST_PRE_VOTE = 17
    MSG_REQUEST_PRE_VOTE_RESPONSE = 18


class ConfChangeType(IntEnum):
    """Kind of a membership change."""

    ADD_NODE = 0
    REMOVE_NODE = 1
    ADD_LEARNER_NODE = 2
    BEGIN_MEMBERSHIP_CHANGE = 3
    FINALIZE_MEMBERSHIP_CHANGE = 4


@dataclass
class Entry:
    """A log entry; its data is interpreted according to ``entry_type``."""

    entry_type: Union[EntryType, int] = EntryType.ENTRY_NORMAL
    term: int = 0
    index: int = 0
    data: bytes = b""
    context: bytes = b""
    sync_log: bool = False


@dataclass
class ConfState:
    """Voter and learner ids of a cluster configuration."""

    nodes: list[int] = field(default_factory=list)
    learners: list[int] = field(default_factory=list)


@dataclass
class SnapshotMetadata:
    """Position and configuration covered by a snapshot."""

    conf_state: Optional[ConfState] = None
    pending_membership_change: Optional[ConfState] = None
    pending_membership_change_index: int = 0
    index: int = 0
    term: int = 0


@dataclass
class Snapshot:
    """Snapshot data together with its metadata."""

    data: bytes = b""
    metadata: Optional[SnapshotMetadata] = None


@dataclass
class Message:
    """A message exchanged between raft peers."""

    msg_type: Union[MessageType, int] = MessageType.MSG_HUP
    to: int = 0
    from_: int = 0
    term: int = 0
    log_term: int = 0
    index: int = 0
    entries: list[Entry] = field(default_factory=list)
    commit: int = 0
    snapshot: Optional[Snapshot] = None
    reject: bool = False
    reject_hint: int = 0
    context: bytes = b""


@dataclass
class HardState:
    """The persistent state of a raft peer."""

    term: int = 0
    vote: int = 0
    commit: int = 0


@dataclass
class ConfChange:
    """A requested change of cluster membership."""

    id: int = 0
    change_type: Union[ConfChangeType, int] = ConfChangeType.ADD_NODE
    node_id: int = 0
    context: bytes = b""
    configuration: Optional[ConfState] = None
    start_index: int = 0


class _Kind(Enum):
    UINT64 = auto()
    BOOL = auto()
    BYTES = auto()
    ENUM = auto()
    MESSAGE = auto()
    REPEATED_MESSAGE = auto()
    PACKED_UINT64 = auto()


@dataclass(frozen=True)
class _Field:
    tag: int
    name: str
    kind: _Kind
    target: Optional[type] = None


def _schema(*fields: _Field) -> tuple[_Field, ...]:
    return tuple(sorted(fields, key=lambda f: f.tag))


_SCHEMA: dict[type, tuple[_Field, ...]] = {
    Entry: _schema(
        _Field(1, "entry_type", _Kind.ENUM, EntryType),
        _Field(2, "term", _Kind.UINT64),
        _Field(3, "index", _Kind.UINT64),
        _Field(4, "data", _Kind.BYTES),
        _Field(6, "context", _Kind.BYTES),
        _Field(5, "sync_log", _Kind.BOOL),
    ),
    SnapshotMetadata: _schema(
        _Field(1, "conf_state", _Kind.MESSAGE, ConfState),
        _Field(4, "pending_membership_change", _Kind.MESSAGE, ConfState),
        _Field(5, "pending_membership_change_index", _Kind.UINT64),
        _Field(2, "index", _Kind.UINT64),
        _Field(3, "term", _Kind.UINT64),
    ),
    Snapshot: _schema(
        _Field(1, "data", _Kind.BYTES),
        _Field(2, "metadata", _Kind.MESSAGE, SnapshotMetadata),
    ),
    Message: _schema(
        _Field(1, "msg_type", _Kind.ENUM, MessageType),
        _Field(2, "to", _Kind.UINT64),
        _Field(3, "from_", _Kind.UINT64),
        _Field(4, "term", _Kind.UINT64),
        _Field(5, "log_term", _Kind.UINT64),
        _Field(6, "index", _Kind.UINT64),
        _Field(7, "entries", _Kind.REPEATED_MESSAGE, Entry),
        _Field(8, "commit", _Kind.UINT64),
        _Field(9, "snapshot", _Kind.MESSAGE, Snapshot),
        _Field(10, "reject", _Kind.BOOL),
        _Field(11, "reject_hint", _Kind.UINT64),
        _Field(12, "context", _Kind.BYTES),
    ),
    HardState: _schema(
        _Field(1, "term", _Kind.UINT64),
        _Field(2, "vote", _Kind.UINT64),
        _Field(3, "commit", _Kind.UINT64),
    ),
    ConfState: _schema(
        _Field(1, "nodes", _Kind.PACKED_UINT64),
        _Field(2, "learners", _Kind.PACKED_UINT64),
    ),
    ConfChange: _schema(
        _Field(1, "id", _Kind.UINT64),
        _Field(2, "change_type", _Kind.ENUM, ConfChangeType),
        _Field(3, "node_id", _Kind.UINT64),
        _Field(4, "context", _Kind.BYTES),
        _Field(5, "configuration", _Kind.MESSAGE, ConfState),
        _Field(6, "start_index", _Kind.UINT64),
    ),
}

_WIRE_VARINT = 0
_WIRE_FIXED64 = 1
_WIRE_LEN = 2
_WIRE_FIXED32 = 5


def _fields_of(message_type: type) -> tuple[_Field, ...]:
    try:
        return _SCHEMA[message_type]
    except KeyError:
        raise TypeError(f"{message_type.__name__} is not a raft message type") from None


def _varint(value: int) -> bytes:
    out = bytearray()
    while True:
        byte = value & 0x7F
        value >>= 7
        if value:
            out.append(byte | 0x80)
        else:
            out.append(byte)
            return bytes(out)


def _key(tag: int, wire: int) -> bytes:
    return _varint((tag << 3) | wire)


def _checked_u64(value: int, name: str) -> int:
    value = int(value)
    if not 0 <= value < _U64_LIMIT:
        raise ProstEncodeError(f"value {value} of field {name} is out of range for uint64")
    return value


def _length_delimited(tag: int, payload: bytes) -> bytes:
    return _key(tag, _WIRE_LEN) + _varint(len(payload)) + payload


def _encode_field(spec: _Field, value) -> bytes:
    kind = spec.kind
    if kind is _Kind.UINT64:
        value = _checked_u64(value, spec.name)
        return _key(spec.tag, _WIRE_VARINT) + _varint(value) if value else b""
    if kind is _Kind.ENUM:
        value = int(value)
        if not -(1 << 31) <= value < (1 << 31):
            raise ProstEncodeError(f"value {value} of field {spec.name} is out of range for int32")
        return _key(spec.tag, _WIRE_VARINT) + _varint(value % _U64_LIMIT) if value else b""
    if kind is _Kind.BOOL:
        return _key(spec.tag, _WIRE_VARINT) + b"\x01" if value else b""
    if kind is _Kind.BYTES:
        return _length_delimited(spec.tag, bytes(value)) if value else b""
    if kind is _Kind.MESSAGE:
        return b"" if value is None else _length_delimited(spec.tag, encode(value))
    if kind is _Kind.REPEATED_MESSAGE:
        return b"".join(_length_delimited(spec.tag, encode(item)) for item in value)
    if not value:
        return b""
    payload = b"".join(_varint(_checked_u64(item, spec.name)) for item in value)
    return _length_delimited(spec.tag, payload)


def encode(message) -> bytes:
    """Serialise a raft message to protocol buffer bytes."""
    return b"".join(
        _encode_field(spec, getattr(message, spec.name)) for spec in _fields_of(type(message))
    )


def _read_varint(data: bytes, pos: int) -> tuple[int, int]:
    result = 0
    shift = 0
    while True:
        if pos >= len(data):
            raise ProstDecodeError("invalid varint")
        byte = data[pos]
        pos += 1
        result |= (byte & 0x7F) << shift
        if not byte & 0x80:
            break
        shift += 7
        if shift >= 70:
            raise ProstDecodeError("invalid varint")
    if result >= _U64_LIMIT:
        raise ProstDecodeError("invalid varint")
    return result, pos


def _read_chunk(data: bytes, pos: int) -> tuple[bytes, int]:
    length, pos = _read_varint(data, pos)
    end = pos + length
    if end > len(data):
        raise ProstDecodeError("buffer underflow")
    return data[pos:end], end


def _skip(data: bytes, pos: int, wire: int) -> int:
    if wire == _WIRE_VARINT:
        return _read_varint(data, pos)[1]
    if wire == _WIRE_LEN:
        return _read_chunk(data, pos)[1]
    width = {_WIRE_FIXED64: 8, _WIRE_FIXED32: 4}.get(wire)
    if width is None:
        raise ProstDecodeError(f"invalid wire type value: {wire}")
    if pos + width > len(data):
        raise ProstDecodeError("buffer underflow")
    return pos + width


def _to_enum(target: type, raw: int):
    value = raw & 0xFFFFFFFF
    if value >= 1 << 31:
        value -= 1 << 32
    try:
        return target(value)
    except ValueError:
        return value


def _expect_wire(spec: _Field, wire: int, expected: int) -> None:
    if wire != expected:
        raise ProstDecodeError(
            f"invalid wire type for field {spec.name}: expected {expected}, got {wire}"
        )


def _decode_field(message, spec: _Field, wire: int, data: bytes, pos: int) -> int:
    kind = spec.kind
    if kind in (_Kind.UINT64, _Kind.BOOL, _Kind.ENUM):
        _expect_wire(spec, wire, _WIRE_VARINT)
        raw, pos = _read_varint(data, pos)
        if kind is _Kind.UINT64:
            setattr(message, spec.name, raw)
        elif kind is _Kind.BOOL:
            setattr(message, spec.name, raw != 0)
        else:
            setattr(message, spec.name, _to_enum(spec.target, raw))
        return pos
    if kind is _Kind.PACKED_UINT64:
        values = getattr(message, spec.name)
        if wire == _WIRE_VARINT:
            raw, pos = _read_varint(data, pos)
            values.append(raw)
            return pos
        _expect_wire(spec, wire, _WIRE_LEN)
        chunk, pos = _read_chunk(data, pos)
        inner = 0
        while inner < len(chunk):
            raw, inner = _read_varint(chunk, inner)
            values.append(raw)
        return pos
    _expect_wire(spec, wire, _WIRE_LEN)
    chunk, pos = _read_chunk(data, pos)
    if kind is _Kind.BYTES:
        setattr(message, spec.name, bytes(chunk))
    elif kind is _Kind.MESSAGE:
        existing = getattr(message, spec.name)
        if existing is None:
            existing = spec.target()
            setattr(message, spec.name, existing)
        _merge(existing, chunk)
    else:
        item = spec.target()
        _merge(item, chunk)
        getattr(message, spec.name).append(item)
    return pos


def _merge(message, data: bytes) -> None:
    by_tag = {spec.tag: spec for spec in _fields_of(type(message))}
    pos = 0
    while pos < len(data):
        key, pos = _read_varint(data, pos)
        tag, wire = key >> 3, key & 0x7
        if tag == 0:
            raise ProstDecodeError("invalid tag value: 0")
        spec = by_tag.get(tag)
        if spec is None:
            pos = _skip(data, pos, wire)
        else:
            pos = _decode_field(message, spec, wire, data, pos)


def decode(message_type: type, data: bytes):
    """Parse protocol buffer bytes into a new instance of ``message_type``."""
    message = message_type() if message_type in _SCHEMA else None
    if message is None:
        _fields_of(message_type)
    _merge(message, bytes(data))
    return message