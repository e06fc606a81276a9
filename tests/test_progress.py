import copy

import pytest

from raftcore.progress import Progress, ProgressState


def test_new_progress_is_probing():
    pr = Progress(7, 4)
    assert pr.next_idx == 7
    assert pr.matched == 0
    assert pr.state is ProgressState.PROBE
    assert not pr.paused
    assert not pr.recent_active
    assert pr.ins.cap == 4


def test_maybe_update_advances_and_rejects_stale():
    pr = Progress(5, 4)
    pr.pause()
    assert pr.maybe_update(3)
    assert pr.matched == 3
    assert pr.next_idx == 5
    assert not pr.paused

    assert not pr.maybe_update(2)
    assert pr.matched == 3

    assert pr.maybe_update(7)
    assert pr.matched == 7
    assert pr.next_idx == 7 + 1


def test_optimistic_update():
    pr = Progress(1, 4)
    pr.optimistic_update(9)
    assert pr.next_idx == 9 + 1


def test_maybe_decr_to_replicate():
    pr = Progress(1, 4)
    pr.maybe_update(5)
    pr.become_replicate()
    pr.next_idx = 9
    assert not pr.maybe_decr_to(4, 10)
    assert pr.next_idx == 9
    assert pr.maybe_decr_to(6, 10)
    assert pr.next_idx == pr.matched + 1


def test_maybe_decr_to_probe():
    pr = Progress(10, 4)
    pr.pause()
    assert not pr.maybe_decr_to(5, 20)
    assert pr.next_idx == 10
    assert pr.paused

    assert pr.maybe_decr_to(9, 5)
    assert pr.next_idx == 5 + 1
    assert not pr.paused


def test_maybe_decr_to_uses_rejected_when_smaller():
    pr = Progress(10, 4)
    assert pr.maybe_decr_to(9, 100)
    assert pr.next_idx == 9


def test_maybe_decr_to_never_below_one():
    pr = Progress(1, 4)
    assert pr.maybe_decr_to(0, 0)
    assert pr.next_idx == 1


def test_maybe_decr_to_with_zero_next_is_stale():
    pr = Progress(0, 4)
    assert not pr.maybe_decr_to(0, 0)
    assert pr.next_idx == 0


def test_become_probe_from_snapshot_skips_past_pending():
    pr = Progress(1, 4)
    pr.maybe_update(1)
    pr.become_snapshot(10)
    pr.become_probe()
    assert pr.state is ProgressState.PROBE
    assert pr.pending_snapshot == 0
    assert pr.next_idx == 10 + 1


def test_become_probe_from_replicate():
    pr = Progress(1, 4)
    pr.maybe_update(3)
    pr.become_replicate()
    pr.next_idx = 20
    pr.become_probe()
    assert pr.state is ProgressState.PROBE
    assert pr.next_idx == pr.matched + 1


def test_become_replicate_resets_window():
    pr = Progress(1, 4)
    pr.maybe_update(2)
    pr.become_replicate()
    pr.update_state(5)
    pr.become_replicate()
    assert pr.ins.count == 0
    assert pr.next_idx == pr.matched + 1


def test_snapshot_state_and_abort():
    pr = Progress(1, 4)
    pr.become_snapshot(8)
    assert pr.state is ProgressState.SNAPSHOT
    assert pr.pending_snapshot == 8
    assert pr.is_paused()
    assert not pr.maybe_snapshot_abort()
    pr.maybe_update(8)
    assert pr.maybe_snapshot_abort()


def test_snapshot_failure_clears_pending():
    pr = Progress(1, 4)
    pr.become_snapshot(8)
    pr.snapshot_failure()
    assert pr.pending_snapshot == 0
    assert pr.state is ProgressState.SNAPSHOT


def test_is_paused_in_probe_follows_flag():
    pr = Progress(1, 4)
    assert not pr.is_paused()
    pr.pause()
    assert pr.is_paused()
    pr.resume()
    assert not pr.is_paused()


def test_replicate_pauses_when_window_full():
    pr = Progress(1, 2)
    pr.become_replicate()
    pr.update_state(1)
    assert not pr.is_paused()
    pr.update_state(2)
    assert pr.is_paused()
    assert pr.next_idx == 2 + 1
    pr.ins.free_to(1)
    assert not pr.is_paused()


def test_update_state_in_probe_pauses():
    pr = Progress(1, 4)
    pr.update_state(5)
    assert pr.paused
    assert pr.next_idx == 1


def test_update_state_in_snapshot_raises():
    pr = Progress(1, 4)
    pr.become_snapshot(3)
    with pytest.raises(RuntimeError):
        pr.update_state(4)


def test_copies_are_independent():
    pr = Progress(1, 4)
    clone = copy.deepcopy(pr)
    assert clone == pr
    clone.become_replicate()
    clone.update_state(3)
    assert pr.ins.count == 0
    assert clone != pr