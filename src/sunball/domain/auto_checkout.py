"""Client-side sweep that checks out players whose presence outlived its TTL."""

from __future__ import annotations

import asyncio
import contextlib
from datetime import UTC, datetime, timedelta
from logging import getLogger
from typing import TYPE_CHECKING

from sunball.domain.errors import SunballError

if TYPE_CHECKING:
    from collections.abc import Callable
    from types import TracebackType

    from sunball.domain.model import Player, PlayerId
    from sunball.domain.presence import PresenceChange, PresenceCoordinator

log = getLogger(__name__)

PRESENCE_TTL = timedelta(hours=12)
SWEEP_INTERVAL_SECONDS = 60.0

type PlayerSource = Callable[[], Player | None]
type CheckoutListener = Callable[[PresenceChange], None]


def _utcnow() -> datetime:
    return datetime.now(UTC)


class AutoCheckoutMonitor:
    """Periodically force a check-out of one signed-in player after ``ttl``.

    The monitor is bound to ``player_id``; once ``player_source`` reports another
    player (or none) the sweep does nothing, so a timer outliving a sign-out can
    never act on the wrong identity. Failures are logged and retried on the next
    tick.
    """

    def __init__(
        self,
        coordinator: PresenceCoordinator,
        player_id: PlayerId,
        player_source: PlayerSource,
        *,
        ttl: timedelta = PRESENCE_TTL,
        interval_seconds: float = SWEEP_INTERVAL_SECONDS,
        on_checkout: CheckoutListener | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._coordinator = coordinator
        self._player_id = player_id
        self._player_source = player_source
        self._ttl = ttl
        self._interval_seconds = interval_seconds
        self._on_checkout = on_checkout
        self._clock = clock
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def sweep(self, now: datetime | None = None) -> PresenceChange | None:
        """Run one check; returns the forced check-out if one happened."""

        player = self._player_source()
        if player is None or player.id != self._player_id:
            return None
        if player.current_field_id is None or player.check_in_time is None:
            return None

        now = now or self._clock()
        elapsed = now - player.check_in_time
        if elapsed <= self._ttl:
            return None

        log.info(
            "Auto check-out of player %s from %s after %s",
            player.id,
            player.current_field_id,
            elapsed,
        )
        try:
            change = self._coordinator.check_out(player, player.current_field_id)
        except SunballError as exc:
            log.warning("Auto check-out of player %s failed: %s", player.id, exc)
            return None
        if self._on_checkout is not None:
            self._on_checkout(change)
        return change

    async def run(self) -> None:
        while True:
            try:
                # blocking store calls stay off the event loop
                await asyncio.to_thread(self.sweep)
            except Exception:
                log.exception("Auto check-out sweep for player %s failed", self._player_id)
            await asyncio.sleep(self._interval_seconds)

    def start(self) -> asyncio.Task[None]:
        """Schedule the sweep loop on the running event loop."""

        if self.running:
            raise RuntimeError("Auto check-out monitor already running")
        self._task = asyncio.get_running_loop().create_task(
            self.run(), name=f"auto-checkout:{self._player_id}"
        )
        return self._task

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task

    async def __aenter__(self) -> AutoCheckoutMonitor:
        self.start()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.stop()


__all__ = ["PRESENCE_TTL", "SWEEP_INTERVAL_SECONDS", "AutoCheckoutMonitor"]
