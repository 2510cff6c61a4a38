"""
Geometric Primitives for camera placement.

Vectors use a Y-up, right-handed frame. Spherical coordinates follow the
convention the focus targets are authored in: the polar angle ``phi`` is
measured from +Y and the azimuth ``theta`` rotates around +Y starting at +Z.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Iterable, Tuple
import numpy as np
import math

from configurator.model.geometry_utils import clamp, lerp


@dataclass
class Vector:
    """
    A vector in 3D space representing direction and magnitude.
    """
    x: float
    y: float
    z: float = 0.0

    def __add__(self, other: Vector) -> Vector:
        return Vector(self.x + other.x, self.y + other.y, self.z + other.z)

    def __sub__(self, other: Vector) -> Vector:
        return Vector(self.x - other.x, self.y - other.y, self.z - other.z)

    @property
    def magnitude(self) -> float:
        return math.sqrt(self.x**2 + self.y**2 + self.z**2)

    def lerp(self, other: Vector, alpha: float) -> Vector:
        """Move a fraction ``alpha`` of the way towards ``other``."""
        return Vector(
            lerp(self.x, other.x, alpha),
            lerp(self.y, other.y, alpha),
            lerp(self.z, other.z, alpha),
        )

    def to_tuple(self) -> Tuple[float, float, float]:
        return (self.x, self.y, self.z)

    @staticmethod
    def from_iterable(values: Iterable[float]) -> Vector:
        x, y, z = (float(v) for v in values)
        return Vector(x, y, z)


@dataclass
class Spherical:
    """
    Spherical coordinates around an origin.

    radius: distance from the origin
    phi: polar angle from +Y in radians
    theta: azimuth around +Y from +Z in radians
    """
    radius: float = 1.0
    phi: float = 0.0
    theta: float = 0.0

    def copy(self) -> Spherical:
        return Spherical(self.radius, self.phi, self.theta)

    def to_vector(self) -> Vector:
        sin_phi_radius = math.sin(self.phi) * self.radius
        return Vector(
            sin_phi_radius * math.sin(self.theta),
            math.cos(self.phi) * self.radius,
            sin_phi_radius * math.cos(self.theta),
        )

    @staticmethod
    def from_vector(vector: Vector) -> Spherical:
        radius = vector.magnitude
        if radius == 0.0:
            return Spherical(0.0, 0.0, 0.0)
        return Spherical(
            radius=radius,
            phi=math.acos(clamp(vector.y / radius, -1.0, 1.0)),
            theta=math.atan2(vector.x, vector.z),
        )

    def interpolate(self, other: Spherical, alpha: float) -> Spherical:
        """Componentwise linear interpolation of radius, phi and theta."""
        return Spherical(
            radius=lerp(self.radius, other.radius, alpha),
            phi=lerp(self.phi, other.phi, alpha),
            theta=lerp(self.theta, other.theta, alpha),
        )

    def is_close(self, other: Spherical, tol: float = 1e-9) -> bool:
        return bool(np.allclose(
            [self.radius, self.phi, self.theta],
            [other.radius, other.phi, other.theta],
            atol=tol,
        ))
