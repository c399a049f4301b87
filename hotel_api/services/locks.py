import threading
from contextlib import contextmanager


class RoomLocks:
    """
    One mutex per room id, created on first use.
    Writers to a room's reservation set (new bookings, status changes) hold
    the room's mutex until their transaction has committed. Readers never
    take it.
    """

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: dict[int, threading.Lock] = {}

    def get(self, room_id: int) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(room_id)
            if lock is None:
                lock = self._locks[room_id] = threading.Lock()
            return lock

    @contextmanager
    def hold(self, room_id: int):
        lock = self.get(room_id)
        with lock:
            yield

    def discard(self, room_id: int) -> None:
        with self._guard:
            self._locks.pop(room_id, None)


room_locks = RoomLocks()
