"""Radial carousel layout for the preview images.

Previews stand on a circle around the viewer, facing inward. An arc
centered on the front of the circle (angle 0, the negative z axis) is
left empty for the home placard. The remaining arc is split into
cSlot - 1 equal steps, so the first and last previews sit at either
edge of the reserved gap.

Angles are in degrees, measured clockwise from the negative z axis,
which is the convention of the A-Frame scene that consumes them.
"""

import math
from dataclasses import dataclass

from .errors import InvalidLayoutInputError

# Coordinates closer to zero than this are written as exactly zero.

G_COORD_EPSILON = 0.001

R_IMAGE_FRACTION_DEFAULT = 0.85
G_SIZE_MAX_DEFAULT = 1.0


@dataclass(frozen=True)
class RadialSlot:
    """Placement of preview iSlot out of cSlot on the carousel."""

    iSlot: int
    cSlot: int
    gRadius: float
    degReserved: float
    rImageFraction: float = R_IMAGE_FRACTION_DEFAULT
    gSizeMax: float = G_SIZE_MAX_DEFAULT

    def __post_init__(self) -> None:
        if self.cSlot < 2:
            raise InvalidLayoutInputError(
                f"radial layout needs at least 2 slots, got {self.cSlot}"
            )
        if not 0 <= self.iSlot < self.cSlot:
            raise InvalidLayoutInputError(
                f"slot index {self.iSlot} out of range for {self.cSlot} slots"
            )
        if not self.gRadius > 0:
            raise InvalidLayoutInputError(f"radius must be positive, got {self.gRadius}")
        if not 0 <= self.degReserved < 360:
            raise InvalidLayoutInputError(
                f"reserved angle must be in [0, 360), got {self.degReserved}"
            )
        if not 0 < self.rImageFraction <= 1:
            raise InvalidLayoutInputError(
                f"image fraction must be in (0, 1], got {self.rImageFraction}"
            )
        if not self.gSizeMax > 0:
            raise InvalidLayoutInputError(
                f"maximum size must be positive, got {self.gSizeMax}"
            )

    @property
    def degUsable(self) -> float:
        return 360.0 - self.degReserved

    @property
    def degImage(self) -> float:
        """Angle of this slot, clockwise from the negative z axis."""

        degStep = self.degUsable / (self.cSlot - 1)
        degStart = self.degReserved / 2
        return self.iSlot * degStep + degStart

    @property
    def gX(self) -> float:
        return _gSnapToZero(self.gRadius * math.cos(self._radAdjusted()))

    @property
    def gZ(self) -> float:
        return _gSnapToZero(-self.gRadius * math.sin(self._radAdjusted()))

    @property
    def degYaw(self) -> float:
        """Rotation about the y axis that turns the image to face the center."""

        return -self.degImage

    @property
    def gEdge(self) -> float:
        """Side length of the square preview, capped at gSizeMax."""

        gCircumferenceUsable = 2 * math.pi * self.gRadius * (self.degUsable / 360)
        gShare = gCircumferenceUsable / self.cSlot
        return min(self.gSizeMax, gShare * self.rImageFraction)

    def _radAdjusted(self) -> float:
        # Clockwise-from-negative-z to counterclockwise-from-x.

        return math.radians(90 - self.degImage)


def lSlotLayout(
    cSlot: int,
    gRadius: float,
    degReserved: float,
    rImageFraction: float = R_IMAGE_FRACTION_DEFAULT,
    gSizeMax: float = G_SIZE_MAX_DEFAULT,
) -> list[RadialSlot]:
    """Compute all cSlot placements in index order."""

    if cSlot < 2:
        raise InvalidLayoutInputError(f"radial layout needs at least 2 slots, got {cSlot}")

    return [
        RadialSlot(
            iSlot=iSlot,
            cSlot=cSlot,
            gRadius=gRadius,
            degReserved=degReserved,
            rImageFraction=rImageFraction,
            gSizeMax=gSizeMax,
        )
        for iSlot in range(cSlot)
    ]


def _gSnapToZero(g: float) -> float:
    return 0.0 if abs(g) < G_COORD_EPSILON else g
