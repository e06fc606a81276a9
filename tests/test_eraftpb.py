import pytest

from raftcore.eraftpb import (
    ConfChange,
    ConfChangeType,
    ConfState,
    Entry,
    EntryType,
    HardState,
    Message,
    MessageType,
    Snapshot,
    SnapshotMetadata,
    decode,
    encode,
)
from raftcore.errors import ProstDecodeError, ProstEncodeError

ALL_TYPES = [Entry, SnapshotMetadata, Snapshot, Message, HardState, ConfState, ConfChange]


@pytest.mark.parametrize("message_type", ALL_TYPES)
def test_default_message_encodes_empty_and_round_trips(message_type):
    assert encode(message_type()) == b""
    assert decode(message_type, b"") == message_type()


def test_hard_state_wire_bytes():
    assert encode(HardState(term=1, vote=2, commit=3)) == b"\x08\x01\x10\x02\x18\x03"


def test_present_empty_nested_message_is_kept():
    snap = Snapshot(metadata=SnapshotMetadata())
    data = encode(snap)
    assert data == b"\x12\x00"
    assert decode(Snapshot, data).metadata == SnapshotMetadata()


def test_full_message_round_trip():
    meta = SnapshotMetadata(
        conf_state=ConfState(nodes=[1, 2, 3], learners=[4]),
        pending_membership_change=ConfState(nodes=[1, 2], learners=[5]),
        pending_membership_change_index=9,
        index=10,
        term=2,
    )
    msg = Message(
        msg_type=MessageType.MSG_APPEND,
        to=2,
        from_=1,
        term=3,
        log_term=2,
        index=7,
        entries=[
            Entry(term=3, index=8, data=b"put 1 a"),
            Entry(entry_type=EntryType.ENTRY_CONF_CHANGE, term=3, index=9, context=b"ctx", sync_log=True),
        ],
        commit=6,
        snapshot=Snapshot(data=b"state", metadata=meta),
        reject=True,
        reject_hint=5,
        context=b"hello",
    )
    decoded = decode(Message, encode(msg))
    assert decoded == msg
    assert decoded.msg_type is MessageType.MSG_APPEND
    assert decoded.entries[1].entry_type is EntryType.ENTRY_CONF_CHANGE


def test_conf_change_round_trip():
    cc = ConfChange(
        id=4,
        change_type=ConfChangeType.BEGIN_MEMBERSHIP_CHANGE,
        node_id=3,
        context=b"x",
        configuration=ConfState(nodes=[1, 3], learners=[4, 5, 6]),
        start_index=12,
    )
    assert decode(ConfChange, encode(cc)) == cc


def test_max_uint64_round_trip():
    hs = HardState(term=(1 << 64) - 1, vote=1, commit=(1 << 63))
    assert decode(HardState, encode(hs)) == hs


def test_encode_rejects_out_of_range_values():
    with pytest.raises(ProstEncodeError):
        encode(HardState(term=-1))
    with pytest.raises(ProstEncodeError):
        encode(ConfState(nodes=[1 << 64]))


def test_encode_rejects_non_message():
    with pytest.raises(TypeError):
        encode("not a message")


def test_decode_rejects_non_message_type():
    with pytest.raises(TypeError):
        decode(str, b"")


def test_decode_accepts_unpacked_repeated_values():
    assert decode(ConfState, b"\x08\x01\x08\x02").nodes == [1, 2]


def test_decode_skips_unknown_fields():
    data = encode(HardState(term=5)) + b"\x78\x2a" + b"\x82\x01\x02ab"
    assert decode(HardState, data) == HardState(term=5)


def test_decode_keeps_unknown_enum_value():
    entry = decode(Entry, b"\x08\x07")
    assert entry.entry_type == 7
    assert decode(Entry, encode(entry)).entry_type == 7


def test_decode_merges_repeated_nested_message():
    first = encode(Snapshot(metadata=SnapshotMetadata(index=3)))
    second = encode(Snapshot(metadata=SnapshotMetadata(term=4)))
    snap = decode(Snapshot, first + second)
    assert snap.metadata.index == 3
    assert snap.metadata.term == 4


@pytest.mark.parametrize(
    "data",
    [
        b"\x08",
        b"\x08\xff\xff\xff\xff\xff\xff\xff\xff\xff\xff\x01",
        b"\x00\x00",
        b"\x0a\x00",
        b"\x22\x05ab",
        b"\x0b",
    ],
)
def test_decode_rejects_malformed_input(data):
    with pytest.raises(ProstDecodeError):
        decode(HardState if data[0] != 0x22 else Entry, data)


def test_enum_values_match_wire_numbers():
    assert MessageType(18) is MessageType.MSG_REQUEST_PRE_VOTE_RESPONSE
    assert ConfChangeType(4) is ConfChangeType.FINALIZE_MEMBERSHIP_CHANGE
    assert EntryType(1) is EntryType.ENTRY_CONF_CHANGE
    assert len(MessageType) == 19