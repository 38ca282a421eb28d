"""Unit tests for cooperative cancellation primitives.

Covers idempotent cancel, cascade to children, late link of child after
parent cancel, callbacks, deadline expiry and raise_if_cancelled behavior.
"""
from __future__ import annotations

import threading

import pytest

from fastgpt_client.base.cancellation import (
    CancellationToken,
    CancelledError,
    DeadlineExceeded,
)


def test_cancel_cascades_to_children_and_is_idempotent():
    parent = CancellationToken()
    child1 = parent.child()
    child2 = parent.child()

    parent.cancel(reason="stop")
    parent.cancel(reason="ignored")

    assert parent.cancelled is True and parent.reason == "stop"  # nosec B101
    assert child1.cancelled is True and child1.reason == "stop"  # nosec B101
    assert child2.cancelled is True and child2.reason == "stop"  # nosec B101


def test_child_cancel_does_not_affect_parent():
    parent = CancellationToken()
    child = parent.child()
    child.cancel("attempt over")
    assert child.cancelled and not parent.cancelled  # nosec B101


def test_link_child_after_parent_cancel_immediately_cancels_child():
    parent = CancellationToken()
    parent.cancel("done")
    late_child = CancellationToken(parent=parent)
    assert late_child.cancelled is True and late_child.reason == "done"  # nosec B101


def test_raise_if_cancelled():
    token = CancellationToken()
    token.raise_if_cancelled()
    token.cancel("terminate")
    with pytest.raises(CancelledError) as ei:
        token.raise_if_cancelled()
    assert ei.value.reason == "terminate"  # nosec B101
    assert not isinstance(ei.value, DeadlineExceeded)  # nosec B101


def test_expire_raises_deadline_and_cascades_flag():
    parent = CancellationToken()
    child = parent.child()
    parent.expire()
    assert parent.deadline_exceeded and child.deadline_exceeded  # nosec B101
    with pytest.raises(DeadlineExceeded):
        child.raise_if_cancelled()


def test_callbacks_fire_once_and_can_be_removed():
    token = CancellationToken()
    fired = []
    token.add_callback(lambda: fired.append("a"))
    remove_b = token.add_callback(lambda: fired.append("b"))
    remove_b()
    token.cancel()
    token.cancel()
    assert fired == ["a"]  # nosec B101


def test_callback_on_cancelled_token_runs_immediately():
    token = CancellationToken()
    token.cancel()
    fired = []
    remove = token.add_callback(lambda: fired.append(1))
    remove()
    assert fired == [1]  # nosec B101


def test_child_callbacks_fire_on_parent_cancel():
    parent = CancellationToken()
    child = parent.child()
    fired = []
    child.add_callback(lambda: fired.append(child.reason))
    parent.cancel("upstream")
    assert fired == ["upstream"]  # nosec B101


def test_cancel_from_other_thread_is_visible():
    token = CancellationToken()
    t = threading.Thread(target=token.cancel, args=("thread",))
    t.start()
    t.join()
    assert token.cancelled and token.reason == "thread"  # nosec B101


def test_detached_child_no_longer_cascades():
    parent = CancellationToken()
    child = parent.child()
    grandchild = child.child()
    assert parent.child_count == 1 and child.child_count == 1  # nosec B101

    grandchild.detach()
    child.detach()
    child.detach()
    assert parent.child_count == 0 and child.child_count == 0  # nosec B101

    parent.cancel("late")
    assert not child.cancelled and not grandchild.cancelled  # nosec B101


def test_detach_root_and_unlink_unknown_are_noops():
    root = CancellationToken()
    root.detach()
    root.unlink_child(CancellationToken())
    assert root.child_count == 0  # nosec B101
