from __future__ import annotations
from dataclasses import dataclass


@dataclass(frozen=True)
class Size:
    width: float
    height: float


@dataclass(frozen=True)
class Rect:
    """
    Axis-aligned rectangle. Die Achsenrichtung hängt vom Raum ab:
      • Viewport: Ursprung oben links, y wächst nach unten
      • Seite (PDF-Punkte): Ursprung unten links, y wächst nach oben
    """
    x: float
    y: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    def contains(self, px: float, py: float, *, margin: float = 0.0) -> bool:
        return (self.x - margin <= px <= self.right + margin
                and self.y - margin <= py <= self.bottom + margin)
