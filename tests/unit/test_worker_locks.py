"""
Worker Lock Registry Unit Tests

src/Services/worker_locks.py
"""

import threading
import time

from src.Services.worker_locks import WorkerLockRegistry


class TestWorkerLockRegistry:

    def test_entry_removed_after_release(self):
        registry = WorkerLockRegistry()

        with registry.hold("W-001"):
            assert len(registry) == 1

        assert len(registry) == 0

    def test_entry_removed_when_block_raises(self):
        registry = WorkerLockRegistry()

        try:
            with registry.hold("W-001"):
                raise RuntimeError("boom")
        except RuntimeError:
            pass

        assert len(registry) == 0

    def test_same_worker_is_serialized(self):
        registry = WorkerLockRegistry()
        inside = []
        overlaps = []

        def critical_section():
            with registry.hold("W-001"):
                inside.append(1)
                if len(inside) > 1:
                    overlaps.append(len(inside))
                time.sleep(0.01)
                inside.pop()

        threads = [threading.Thread(target=critical_section) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert overlaps == []
        assert len(registry) == 0

    def test_different_workers_do_not_block(self):
        registry = WorkerLockRegistry()
        acquired = threading.Event()

        def hold_other():
            with registry.hold("W-002"):
                acquired.set()

        with registry.hold("W-001"):
            other = threading.Thread(target=hold_other)
            other.start()
            assert acquired.wait(timeout=2)
            other.join()
            assert len(registry) == 1

        assert len(registry) == 0
