"""PlayerSession - the player's position, wallet and trail."""

from __future__ import annotations

from dataclasses import dataclass, field

from geocoin.errors import InsufficientFundsError
from geocoin.world.cell import LatLng


@dataclass
class PlayerSession:
    """Everything about the player that survives a restart.

    Attributes:
        location: Current position.
        points: Points accumulated from collecting coins.
        coins: Coins in the wallet.  Shared across all caches.
        movement_history: Every position moved to, oldest first.
    """

    location: LatLng
    points: int = 0
    coins: int = 0
    movement_history: list[LatLng] = field(default_factory=list)

    def move_to(self, location: LatLng) -> None:
        """Set the current location and append it to the history."""
        self.location = location
        self.movement_history.append(location)

    def earn(self, coins: int, points: int) -> None:
        """Add collected coins and the points they were worth."""
        self.coins += coins
        self.points += points

    def spend(self, n: int) -> None:
        """Remove ``n`` coins from the wallet.

        Raises:
            InsufficientFundsError: If the wallet holds fewer than ``n``
                or ``n`` is not positive.
        """
        if n <= 0 or n > self.coins:
            raise InsufficientFundsError(n, self.coins)
        self.coins -= n

    def reset(self, location: LatLng) -> None:
        """Zero the totals and history, placing the player at ``location``."""
        self.location = location
        self.points = 0
        self.coins = 0
        self.movement_history = []

    @property
    def status(self) -> str:
        """One-line readout of the player's totals."""
        if self.points == 0 and self.coins == 0:
            return "No points yet..."
        return f"{self.points} points accumulated, {self.coins} coins collected"
