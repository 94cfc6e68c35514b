"""LocationFeed - serial delivery of live position updates.

Stands in for a device's geolocation watch.  Whatever produces fixes
calls ``publish``; the subscribed handler sees them one at a time.  A
fix published from inside the handler is queued and delivered after the
current one finishes, so two handler invocations never interleave.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Callable

from geocoin.world.cell import LatLng

logger = logging.getLogger(__name__)

LocationHandler = Callable[[LatLng], None]


@dataclass
class LocationFeed:
    """A single-subscriber stream of location fixes.

    Attributes:
        handler: The current subscriber, or None when not watching.
    """

    handler: LocationHandler | None = None
    _pending: deque[LatLng] = field(default_factory=deque, init=False, repr=False)
    _delivering: bool = field(default=False, init=False, repr=False)

    @property
    def watching(self) -> bool:
        """Return True while a handler is subscribed."""
        return self.handler is not None

    def subscribe(self, handler: LocationHandler) -> None:
        """Start delivering fixes to ``handler``, replacing any previous one."""
        self.handler = handler
        logger.info("Location watch started")

    def unsubscribe(self) -> None:
        """Stop delivering fixes.  Queued fixes are dropped."""
        self.handler = None
        self._pending.clear()
        logger.info("Location watch stopped")

    def toggle(self, handler: LocationHandler) -> bool:
        """Subscribe if idle, unsubscribe if watching.

        Returns:
            True if the feed is watching after the call.
        """
        if self.watching:
            self.unsubscribe()
        else:
            self.subscribe(handler)
        return self.watching

    def publish(self, location: LatLng) -> None:
        """Deliver a fix to the subscriber; ignored when not watching."""
        if self.handler is None:
            return
        self._pending.append(location)
        if self._delivering:
            return
        self._delivering = True
        try:
            while self._pending and self.handler is not None:
                self.handler(self._pending.popleft())
        finally:
            self._delivering = False
