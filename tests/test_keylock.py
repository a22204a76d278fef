import threading

import pytest

from cosikit.keylock import KeyMutexLock


def test_lock_and_unlock_change_state():
    key_lock = KeyMutexLock(10)
    key_lock.lock("key-value")
    assert key_lock.locked("key-value") is True
    key_lock.unlock("key-value")
    assert key_lock.locked("key-value") is False


def test_single_lock_is_shared_by_all_keys():
    key_lock = KeyMutexLock(1)
    key_lock.lock("first")
    assert key_lock.locked("second") is True
    key_lock.unlock("second")
    assert key_lock.locked("first") is False


def test_unlock_of_unlocked_key_raises():
    key_lock = KeyMutexLock(4)
    with pytest.raises(RuntimeError):
        key_lock.unlock("key-value")


@pytest.mark.parametrize("size", [0, -1])
def test_non_positive_size_is_rejected(size):
    with pytest.raises(ValueError):
        KeyMutexLock(size)