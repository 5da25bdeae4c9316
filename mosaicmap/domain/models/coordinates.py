"""Grid coordinate value objects for hexagonal and square lattices."""
import math
from abc import ABC, abstractmethod
from typing import Tuple

SQRT3 = math.sqrt(3)


class Coordinate(ABC):
    """Immutable, hashable address of one lattice cell.

    ``neighbours()`` always returns the same number of coordinates, in
    counter-clockwise order starting from the rightmost neighbour.
    """

    __slots__ = ()

    @property
    @abstractmethod
    def components(self) -> Tuple[int, ...]:
        """Integer components, as written by coordinate export."""

    @abstractmethod
    def plus(self, other: 'Coordinate') -> 'Coordinate':
        pass

    @abstractmethod
    def minus(self, other: 'Coordinate') -> 'Coordinate':
        pass

    @abstractmethod
    def times(self, k) -> 'Coordinate':
        """Scale by ``k``; float factors are rounded per component."""

    @abstractmethod
    def normalize(self) -> 'Coordinate':
        pass

    @abstractmethod
    def norm(self) -> int:
        """Lattice distance from the origin."""

    @abstractmethod
    def dot(self, other: 'Coordinate') -> int:
        pass

    @abstractmethod
    def neighbours(self) -> Tuple['Coordinate', ...]:
        pass

    @abstractmethod
    def connected_vicinity(self) -> Tuple['Coordinate', ...]:
        """Cells that touch this cell, at least in a corner."""

    @abstractmethod
    def ring(self, radius: int) -> Tuple['Coordinate', ...]:
        pass

    @abstractmethod
    def to_point(self) -> Tuple[float, float]:
        """Centre of the cell in the plane (unit side length)."""

    @classmethod
    @abstractmethod
    def zero(cls) -> 'Coordinate':
        pass

    @classmethod
    @abstractmethod
    def unit_vectors(cls) -> Tuple['Coordinate', ...]:
        pass

    @classmethod
    @abstractmethod
    def parse(cls, components) -> 'Coordinate':
        pass

    def disk(self, radius: int) -> Tuple['Coordinate', ...]:
        """All cells within ``radius``, centre first and then ring by ring."""
        cells = [self]
        for r in range(1, radius + 1):
            cells.extend(self.ring(r))
        return tuple(cells)

    def distance(self, other: 'Coordinate') -> int:
        return self.minus(other).norm()

    def neighbour_index(self, other: 'Coordinate') -> int:
        """Position of ``other`` in ``neighbours()``, -1 if not adjacent."""
        for i, c in enumerate(self.neighbours()):
            if c == other:
                return i
        return -1

    def __add__(self, other: 'Coordinate') -> 'Coordinate':
        return self.plus(other)

    def __sub__(self, other: 'Coordinate') -> 'Coordinate':
        return self.minus(other)

    def __mul__(self, k) -> 'Coordinate':
        return self.times(k)

    def __neg__(self) -> 'Coordinate':
        return self.times(-1)

    def __str__(self) -> str:
        return "(" + ", ".join(str(v) for v in self.components) + ")"


class HexCoordinate(Coordinate):
    """Barycentric hexagon coordinate.

    ``(x, y, z)`` and ``(x + k, y + k, z + k)`` address the same cell, so
    equality and hashing only look at ``(x - z, y - z)``.
    """

    __slots__ = ('x', 'y', 'z')

    def __init__(self, x: int, y: int, z: int = 0):
        object.__setattr__(self, 'x', int(x))
        object.__setattr__(self, 'y', int(y))
        object.__setattr__(self, 'z', int(z))

    def __setattr__(self, name, value):
        raise AttributeError(f"{type(self).__name__} is immutable")

    @property
    def components(self) -> Tuple[int, int, int]:
        return (self.x, self.y, self.z)

    def plus(self, other: 'HexCoordinate') -> 'HexCoordinate':
        self._check_same_lattice(other)
        return HexCoordinate(self.x + other.x, self.y + other.y, self.z + other.z)

    def minus(self, other: 'HexCoordinate') -> 'HexCoordinate':
        self._check_same_lattice(other)
        return HexCoordinate(self.x - other.x, self.y - other.y, self.z - other.z)

    def times(self, k) -> 'HexCoordinate':
        if isinstance(k, float):
            return HexCoordinate(round(self.x * k), round(self.y * k), round(self.z * k))
        return HexCoordinate(self.x * k, self.y * k, self.z * k)

    def normalize(self) -> 'HexCoordinate':
        return HexCoordinate(self.x - self.z, self.y - self.z, 0)

    def minimize(self) -> 'HexCoordinate':
        """Equivalent coordinate whose smallest non-negative components are minimal."""
        m = sorted(self.components)[1]
        return HexCoordinate(self.x - m, self.y - m, self.z - m)

    def norm(self) -> int:
        return max(self.components) - min(self.components)

    def dot(self, other: 'HexCoordinate') -> int:
        self._check_same_lattice(other)
        return self.x * other.x + self.y * other.y + self.z * other.z

    def neighbours(self) -> Tuple['HexCoordinate', ...]:
        x, y, z = self.x, self.y, self.z
        return (
            HexCoordinate(x + 1, y, z),
            HexCoordinate(x, y - 1, z),
            HexCoordinate(x, y, z + 1),
            HexCoordinate(x - 1, y, z),
            HexCoordinate(x, y + 1, z),
            HexCoordinate(x, y, z - 1),
        )

    def connected_vicinity(self) -> Tuple['HexCoordinate', ...]:
        return self.neighbours()

    def ring(self, radius: int) -> Tuple['HexCoordinate', ...]:
        if radius == 0:
            return (self,)
        # six straight segments, starting at the rightmost cell of the ring
        steps = ((-1, -1, 0), (0, 1, 1), (-1, 0, -1), (1, 1, 0), (0, -1, -1), (1, 0, 1))
        x, y, z = self.x + radius, self.y, self.z
        cells = []
        for dx, dy, dz in steps:
            for _ in range(radius):
                cells.append(HexCoordinate(x, y, z))
                x, y, z = x + dx, y + dy, z + dz
        return tuple(cells)

    def to_point(self) -> Tuple[float, float]:
        return (SQRT3 * (self.x - (self.y + self.z) / 2.0), 1.5 * (self.z - self.y))

    @classmethod
    def zero(cls) -> 'HexCoordinate':
        return cls(0, 0, 0)

    @classmethod
    def unit_vectors(cls) -> Tuple['HexCoordinate', ...]:
        return cls.zero().neighbours()

    @classmethod
    def parse(cls, components) -> 'HexCoordinate':
        values = [int(v) for v in components]
        if len(values) != 3:
            raise ValueError(f"Hexagonal coordinates have 3 components, got {len(values)}")
        return cls(*values)

    def _key(self) -> Tuple[int, int]:
        return (self.x - self.z, self.y - self.z)

    def _check_same_lattice(self, other) -> None:
        if not isinstance(other, HexCoordinate):
            raise TypeError(f"Cannot combine {type(self).__name__} with {type(other).__name__}")

    def __eq__(self, other) -> bool:
        if not isinstance(other, HexCoordinate):
            return NotImplemented
        return self._key() == other._key()

    def __hash__(self) -> int:
        return hash(('hex',) + self._key())

    def __repr__(self) -> str:
        return f"HexCoordinate({self.x}, {self.y}, {self.z})"


class SquareCoordinate(Coordinate):
    """Cartesian square-cell coordinate with four-neighbour adjacency."""

    __slots__ = ('x', 'y')

    def __init__(self, x: int, y: int):
        object.__setattr__(self, 'x', int(x))
        object.__setattr__(self, 'y', int(y))

    def __setattr__(self, name, value):
        raise AttributeError(f"{type(self).__name__} is immutable")

    @property
    def components(self) -> Tuple[int, int]:
        return (self.x, self.y)

    def plus(self, other: 'SquareCoordinate') -> 'SquareCoordinate':
        self._check_same_lattice(other)
        return SquareCoordinate(self.x + other.x, self.y + other.y)

    def minus(self, other: 'SquareCoordinate') -> 'SquareCoordinate':
        self._check_same_lattice(other)
        return SquareCoordinate(self.x - other.x, self.y - other.y)

    def times(self, k) -> 'SquareCoordinate':
        if isinstance(k, float):
            return SquareCoordinate(round(self.x * k), round(self.y * k))
        return SquareCoordinate(self.x * k, self.y * k)

    def normalize(self) -> 'SquareCoordinate':
        return self

    def norm(self) -> int:
        return abs(self.x) + abs(self.y)

    def dot(self, other: 'SquareCoordinate') -> int:
        self._check_same_lattice(other)
        return self.x * other.x + self.y * other.y

    def neighbours(self) -> Tuple['SquareCoordinate', ...]:
        x, y = self.x, self.y
        return (
            SquareCoordinate(x + 1, y),
            SquareCoordinate(x, y + 1),
            SquareCoordinate(x - 1, y),
            SquareCoordinate(x, y - 1),
        )

    def connected_vicinity(self) -> Tuple['SquareCoordinate', ...]:
        x, y = self.x, self.y
        return tuple(SquareCoordinate(x + dx, y + dy) for dx, dy in
                     ((1, 0), (1, 1), (0, 1), (-1, 1), (-1, 0), (-1, -1), (0, -1), (1, -1)))

    def ring(self, radius: int) -> Tuple['SquareCoordinate', ...]:
        if radius == 0:
            return (self,)
        steps = ((-1, 1), (-1, -1), (1, -1), (1, 1))
        x, y = self.x + radius, self.y
        cells = []
        for dx, dy in steps:
            for _ in range(radius):
                cells.append(SquareCoordinate(x, y))
                x, y = x + dx, y + dy
        return tuple(cells)

    def to_point(self) -> Tuple[float, float]:
        return (float(self.x), float(self.y))

    @classmethod
    def zero(cls) -> 'SquareCoordinate':
        return cls(0, 0)

    @classmethod
    def unit_vectors(cls) -> Tuple['SquareCoordinate', ...]:
        return cls.zero().neighbours()

    @classmethod
    def parse(cls, components) -> 'SquareCoordinate':
        values = [int(v) for v in components]
        if len(values) != 2:
            raise ValueError(f"Square coordinates have 2 components, got {len(values)}")
        return cls(*values)

    def _check_same_lattice(self, other) -> None:
        if not isinstance(other, SquareCoordinate):
            raise TypeError(f"Cannot combine {type(self).__name__} with {type(other).__name__}")

    def __eq__(self, other) -> bool:
        if not isinstance(other, SquareCoordinate):
            return NotImplemented
        return self.x == other.x and self.y == other.y

    def __hash__(self) -> int:
        return hash(('square', self.x, self.y))

    def __repr__(self) -> str:
        return f"SquareCoordinate({self.x}, {self.y})"
