# Run progress - percentage shown to the user while a batch converts
import threading
from typing import Callable, List

from services.models import ProgressMode

ProgressListener = Callable[[int], None]

TICK_INTERVAL = 0.1


class RunProgress:
    """
    Percentage in 0..100 for one conversion run.

    COSMETIC mode advances on a fixed timer regardless of finished files,
    then snaps to 100 on success or back to 0 on failure.
    COMPLETION mode follows the count of finished files.
    """

    def __init__(self, mode=ProgressMode.COSMETIC, tick_interval: float = TICK_INTERVAL, step: int = 1):
        self.mode = ProgressMode(mode)
        self.tick_interval = tick_interval
        self.step = step
        self._lock = threading.Lock()
        self._value = 0
        self._total = 0
        self._done = 0
        self._listeners: List[ProgressListener] = []
        self._stop = threading.Event()
        self._ticker = None

    @property
    def value(self) -> int:
        with self._lock:
            return self._value

    def subscribe(self, listener: ProgressListener) -> None:
        self._listeners.append(listener)

    def start(self, total: int) -> None:
        self._stop_ticker()
        with self._lock:
            self._total = total
            self._done = 0
        self._set(0)
        if self.mode is ProgressMode.COSMETIC:
            self._stop = threading.Event()
            self._ticker = threading.Thread(target=self._tick, name="progress-ticker", daemon=True)
            self._ticker.start()

    def file_done(self) -> None:
        if self.mode is not ProgressMode.COMPLETION:
            return
        with self._lock:
            self._done += 1
            done, total = self._done, self._total
        if total:
            self._set(min(100, done * 100 // total))

    def finish(self) -> None:
        self._stop_ticker()
        self._set(100)

    def fail(self) -> None:
        self._stop_ticker()
        self._set(0)

    def _tick(self) -> None:
        stop = self._stop
        while not stop.wait(self.tick_interval):
            with self._lock:
                current = self._value
            if current >= 100:
                return
            self._set(min(100, current + self.step), only_if=current)

    def _set(self, value: int, only_if: int = None) -> None:
        with self._lock:
            if only_if is not None and self._value != only_if:
                return
            if value == self._value:
                return
            self._value = value
        for listener in list(self._listeners):
            listener(value)

    def _stop_ticker(self) -> None:
        self._stop.set()
        ticker = self._ticker
        if ticker is not None and ticker is not threading.current_thread():
            ticker.join()
        self._ticker = None
