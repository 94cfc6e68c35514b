"""Config - load gameplay parameters from YAML files.

Tile size, neighbourhood radius, spawn odds and the economic scaling
constants all live in YAML and are parsed into a typed dataclass here.
Changing any of them changes the generated world, so a save is only
meaningful together with the config it was played under.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import yaml

from geocoin.world.cell import LatLng


@dataclass
class GameConfig:
    """Top-level game configuration.

    Attributes:
        tile_size: Width of one grid cell in degrees.
        neighborhood_size: Radius, in cells, of the window scanned for
            caches around the player.
        spawn_probability: Chance that any cell holds a cache.
        point_scale: Upper bound (exclusive) of a cache's point value.
        coin_scale: Upper bound (exclusive) of a cache's initial coins.
        home_lat: Latitude the player starts at and resets to.
        home_lng: Longitude the player starts at and resets to.
        save_slot: Name of the persistence slot for this game.
    """

    tile_size: float = 1e-4
    neighborhood_size: int = 8
    spawn_probability: float = 0.1

    # Cache economics
    point_scale: int = 100
    coin_scale: int = 10

    # Oakes College classroom
    home_lat: float = 36.98949379578401
    home_lng: float = -122.06277128548504

    save_slot: str = "gameState"

    @property
    def home(self) -> LatLng:
        """The starting location."""
        return LatLng(self.home_lat, self.home_lng)

    @classmethod
    def from_yaml(cls, path: str | Path) -> GameConfig:
        """Load configuration from a YAML file.

        Args:
            path: Path to the YAML config file.

        Returns:
            A populated GameConfig instance.

        Raises:
            FileNotFoundError: If the config file does not exist.
        """
        path = Path(path)
        with path.open("r") as f:
            data = yaml.safe_load(f) or {}

        return cls(
            tile_size=data.get("tile_size", cls.tile_size),
            neighborhood_size=data.get("neighborhood_size", cls.neighborhood_size),
            spawn_probability=data.get("spawn_probability", cls.spawn_probability),
            point_scale=data.get("point_scale", cls.point_scale),
            coin_scale=data.get("coin_scale", cls.coin_scale),
            home_lat=data.get("home_lat", cls.home_lat),
            home_lng=data.get("home_lng", cls.home_lng),
            save_slot=data.get("save_slot", cls.save_slot),
        )
