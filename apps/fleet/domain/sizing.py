"""
Size Matcher

Maps a rider height to a bike size class and decides whether a
non-ideal size is still acceptable for a rider.

SizeClass is the single source of truth for size ordering. Adjacency
probing (one size up, one size down, ...) walks this ordering and
nothing else.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Iterator, List, Optional

from shared.domain.base import ValueObject

DEFAULT_TOLERANCE = 0.30

# Probe order used when the ideal size has no stock
ADJACENT_OFFSETS = (1, -1, 2, -2)


class SizeClass(str, Enum):
    """Bike frame sizes, smallest first"""
    XS = 'XS'
    S = 'S'
    M = 'M'
    L = 'L'
    XL = 'XL'

    @classmethod
    def ordered(cls) -> List['SizeClass']:
        return list(cls)

    @property
    def rank(self) -> int:
        return SizeClass.ordered().index(self)

    def shifted(self, offset: int) -> Optional['SizeClass']:
        """Size `offset` steps away, or None past either end"""
        position = self.rank + offset
        sizes = SizeClass.ordered()
        if 0 <= position < len(sizes):
            return sizes[position]
        return None

    def adjacent(self) -> Iterator['SizeClass']:
        """Neighbouring sizes in probe order, skipping out-of-range steps"""
        for offset in ADJACENT_OFFSETS:
            size = self.shifted(offset)
            if size is not None:
                yield size


@dataclass(frozen=True)
class HeightRange(ValueObject):
    """
    Inclusive height band (cm) served by one size class

    Ranges of different sizes need not be contiguous.
    """
    size_class: SizeClass
    min_height: float
    max_height: float

    def __post_init__(self):
        if not isinstance(self.size_class, SizeClass):
            object.__setattr__(self, 'size_class', SizeClass(self.size_class))
        if self.min_height > self.max_height:
            raise ValueError(
                f"Height range for {self.size_class.value} is inverted: "
                f"{self.min_height} > {self.max_height}"
            )

    @property
    def center(self) -> float:
        return (self.min_height + self.max_height) / 2

    def contains(self, height: float) -> bool:
        return self.min_height <= height <= self.max_height


class SizeMatcher:
    """
    Height-to-size lookups over a height range table

    Usage:
        matcher = SizeMatcher(ranges)
        size = matcher.ideal_size(172)          # SizeClass.L or None
        matcher.within_tolerance(172, SizeClass.M)
    """

    def __init__(self, ranges: Iterable[HeightRange], tolerance: float = DEFAULT_TOLERANCE):
        self._ranges = {}
        for height_range in ranges:
            # One active range per size class, last one wins
            self._ranges[height_range.size_class] = height_range
        self.tolerance = tolerance

    @property
    def ranges(self) -> List[HeightRange]:
        """Configured ranges in size order"""
        return [self._ranges[size] for size in SizeClass.ordered() if size in self._ranges]

    def range_for(self, size_class: SizeClass) -> Optional[HeightRange]:
        return self._ranges.get(SizeClass(size_class))

    def ideal_size(self, height: float) -> Optional[SizeClass]:
        """
        Size class whose range contains the height

        Returns None when the height is outside every configured band.
        If bands overlap, the smallest matching size wins.
        """
        for height_range in self.ranges:
            if height_range.contains(height):
                return height_range.size_class
        return None

    def within_tolerance(
        self,
        height: float,
        size_class: SizeClass,
        tolerance: Optional[float] = None,
    ) -> bool:
        """
        Accept a size if the rider is close enough to its range midpoint

        |height - center| / center <= tolerance. Sizes without a
        configured range are never acceptable.
        """
        height_range = self.range_for(size_class)
        if height_range is None or height_range.center <= 0:
            return False
        limit = self.tolerance if tolerance is None else tolerance
        deviation = abs(height - height_range.center) / height_range.center
        return deviation <= limit

    def candidate_sizes(self, height: float) -> List[SizeClass]:
        """
        Sizes to try for a rider, best first

        The ideal size, then each adjacent size (1 up, 1 down, 2 up,
        2 down) that passes the tolerance check. Empty when the height
        matches no range.
        """
        ideal = self.ideal_size(height)
        if ideal is None:
            return []
        candidates = [ideal]
        for size in ideal.adjacent():
            if self.within_tolerance(height, size):
                candidates.append(size)
        return candidates
