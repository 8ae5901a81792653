"""
按 key 加锁的进程内互斥注册表

预订时对每个房间加锁，使"冲突检查 + 写入"成为一个不可分割的区间；
同一账单的并发支付同理。多个 key 按排序后的顺序加锁，避免死锁。
跨进程部署时还需要数据库行锁（见 BookingService 中的 with_for_update）。
"""
from contextlib import contextmanager
from typing import Dict, Hashable, Iterable, Iterator
import logging
import threading

logger = logging.getLogger(__name__)


class LockRegistry:
    """
    线程安全的 key -> Lock 注册表

    使用方式：
        with room_locks.hold([101, 102]):
            ... 检查冲突并写入 ...
    """

    def __init__(self, name: str):
        self.name = name
        self._locks: Dict[Hashable, threading.Lock] = {}
        self._registry_lock = threading.Lock()

    def _lock_for(self, key: Hashable) -> threading.Lock:
        with self._registry_lock:
            lock = self._locks.get(key)
            if lock is None:
                lock = threading.Lock()
                self._locks[key] = lock
            return lock

    @contextmanager
    def hold(self, keys: Iterable[Hashable]) -> Iterator[None]:
        """按排序顺序获取全部 key 的锁，退出时逆序释放"""
        ordered = sorted(set(keys))
        acquired = []
        try:
            for key in ordered:
                lock = self._lock_for(key)
                lock.acquire()
                acquired.append(lock)
            logger.debug(f"{self.name} locks held: {ordered}")
            yield
        finally:
            for lock in reversed(acquired):
                lock.release()


# 全局实例
room_locks = LockRegistry("room")
bill_locks = LockRegistry("bill")
