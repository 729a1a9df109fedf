from typing import Any, Awaitable, Callable, Optional
import asyncio


def format_elapsed(total_seconds: int) -> str:
    mins, secs = divmod(max(0, int(total_seconds)), 60)
    return f"{mins:02d}:{secs:02d}"


class CallTimer:
    """Cosmetic elapsed-time ticker for the in-call screen. Never persisted."""

    def __init__(
        self,
        on_tick: Optional[Callable[[int], None]] = None,
        interval: float = 1.0,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self.seconds = 0
        self.interval = interval
        self._on_tick = on_tick
        self._sleep = sleep
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def display(self) -> str:
        return format_elapsed(self.seconds)

    def start(self) -> None:
        self.stop()
        self.seconds = 0
        self._task = asyncio.get_running_loop().create_task(self._run())

    async def _run(self) -> None:
        while True:
            await self._sleep(self.interval)
            self.seconds += 1
            if self._on_tick:
                self._on_tick(self.seconds)

    def stop(self) -> None:
        if self._task is not None:
            self._task.cancel()
            self._task = None
