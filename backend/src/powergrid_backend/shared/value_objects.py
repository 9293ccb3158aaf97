"""Immutable value objects shared across the domain layer.

Hex cells use odd-row offset coordinates ``(x, z)``; neighbour arithmetic is
done in axial space and converted back.
"""

from __future__ import annotations

from pydantic import BaseModel
from pydantic.config import ConfigDict

from powergrid_backend.shared.enums import CornerPosition, HexDirection

_AXIAL_DELTAS: dict[HexDirection, tuple[int, int]] = {
    HexDirection.NE: (1, -1),
    HexDirection.E: (1, 0),
    HexDirection.SE: (0, 1),
    HexDirection.SW: (-1, 1),
    HexDirection.W: (-1, 0),
    HexDirection.NW: (0, -1),
}


class HexCoordinates(BaseModel):
    """Offset position of a hex cell on the map."""

    model_config = ConfigDict(frozen=True)

    x: int
    z: int

    @property
    def key(self) -> str:
        """Return the stable string key used in mappings and snapshots."""
        return f"{self.x},{self.z}"

    @classmethod
    def from_key(cls, key: str) -> HexCoordinates:
        """Parse a ``"x,z"`` key back into coordinates."""
        x, z = key.split(",")
        return cls(x=int(x), z=int(z))

    @classmethod
    def from_axial(cls, q: int, r: int) -> HexCoordinates:
        """Convert axial ``(q, r)`` into odd-row offset coordinates."""
        return cls(x=q + (r - (r & 1)) // 2, z=r)

    def to_axial(self) -> tuple[int, int]:
        """Return the axial ``(q, r)`` pair for this cell."""
        return self.x - (self.z - (self.z & 1)) // 2, self.z

    def neighbor(self, direction: HexDirection) -> HexCoordinates:
        """Return the adjacent cell in *direction*."""
        q, r = self.to_axial()
        dq, dr = _AXIAL_DELTAS[direction]
        return HexCoordinates.from_axial(q + dq, r + dr)

    def neighbors(self) -> tuple[HexCoordinates, ...]:
        """Return all six adjacent cells."""
        return tuple(self.neighbor(direction) for direction in HexDirection)


class CornerCoordinates(BaseModel):
    """A vertex shared by three hexes, addressed by its top or bottom hex."""

    model_config = ConfigDict(frozen=True)

    hex: HexCoordinates
    position: CornerPosition

    @property
    def key(self) -> str:
        """Return the stable string key used in mappings and snapshots."""
        return f"{self.hex.key},{self.position.value}"

    def adjacent_hexes(self) -> tuple[HexCoordinates, HexCoordinates, HexCoordinates]:
        """Return the three hexes that meet at this corner."""
        if self.position is CornerPosition.NORTH:
            return (
                self.hex,
                self.hex.neighbor(HexDirection.NW),
                self.hex.neighbor(HexDirection.NE),
            )
        return (
            self.hex,
            self.hex.neighbor(HexDirection.SW),
            self.hex.neighbor(HexDirection.SE),
        )

    def adjacent_corners(
        self,
    ) -> tuple[CornerCoordinates, CornerCoordinates, CornerCoordinates]:
        """Return the three corners one edge away from this corner."""
        if self.position is CornerPosition.NORTH:
            north_west = self.hex.neighbor(HexDirection.NW)
            return (
                CornerCoordinates(hex=north_west, position=CornerPosition.SOUTH),
                CornerCoordinates(
                    hex=self.hex.neighbor(HexDirection.NE),
                    position=CornerPosition.SOUTH,
                ),
                CornerCoordinates(
                    hex=north_west.neighbor(HexDirection.NE),
                    position=CornerPosition.SOUTH,
                ),
            )
        south_east = self.hex.neighbor(HexDirection.SE)
        return (
            CornerCoordinates(
                hex=self.hex.neighbor(HexDirection.SW),
                position=CornerPosition.NORTH,
            ),
            CornerCoordinates(hex=south_east, position=CornerPosition.NORTH),
            CornerCoordinates(
                hex=south_east.neighbor(HexDirection.SW),
                position=CornerPosition.NORTH,
            ),
        )

    def touches(self, coordinates: HexCoordinates) -> bool:
        """Return ``True`` when *coordinates* is one of the corner's hexes."""
        return coordinates in self.adjacent_hexes()

    def is_adjacent_to(self, other: CornerCoordinates) -> bool:
        """Return ``True`` when *other* is one edge away from this corner."""
        return other in self.adjacent_corners()


__all__ = [
    "CornerCoordinates",
    "HexCoordinates",
]
