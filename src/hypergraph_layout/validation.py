"""
Input validation utilities for hypergraph layouts.

Provides the error taxonomy of the package and centralized validation
functions for hypergraphs, vertex distances and layout parameters. Raises
descriptive exceptions on invalid input.

Two families of errors exist:

- ValidationError (and subclasses): the caller supplied an invalid input.
- LayoutConsistencyError: a pipeline stage produced a structure violating
  the invariants of a later stage. This is a defect, not a bad input.
"""

from __future__ import annotations

import numbers
from typing import Any, Hashable, Iterable, Mapping


class ValidationError(ValueError):
    """Base exception for layout validation errors."""

    pass


class InvalidParameterError(ValidationError):
    """Raised when a layout parameter is missing, unknown or out of range."""

    pass


class UndefinedVertexError(ValidationError):
    """Raised when a hyperedge references a vertex with no distance."""

    pass


class InvalidHyperedgeError(ValidationError):
    """Raised when a hyperedge is malformed or declared twice."""

    pass


class InvalidEntryTypeError(ValidationError):
    """Raised when an entry type is not supported by an operation."""

    pass


class LayoutConsistencyError(RuntimeError):
    """Raised when an internal invariant of the layout pipeline is broken."""

    pass


class GraphStructureWarning(UserWarning):
    """Warning issued when graph structure doesn't match algorithm assumptions."""

    pass


def validate_length(name: str, value: Any, *, positive: bool = False) -> float:
    """
    Validate a length parameter (size, margin or width).

    Args:
        name: Parameter name, used in the error message
        value: Value to check
        positive: If True, zero is rejected as well

    Returns:
        The value converted to float

    Raises:
        InvalidParameterError: If the value is not a finite number in range
    """
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        raise InvalidParameterError(f"{name} must be a number, got {value!r}")

    result = float(value)
    if result != result or result in (float("inf"), float("-inf")):
        raise InvalidParameterError(f"{name} must be finite, got {value!r}")
    if positive and result <= 0:
        raise InvalidParameterError(f"{name} must be positive, got {value!r}")
    if result < 0:
        raise InvalidParameterError(f"{name} must be non-negative, got {value!r}")
    return result


def validate_iterations(iterations: int) -> int:
    """
    Validate iteration count is positive.

    Args:
        iterations: Number of iterations

    Returns:
        Validated iteration count

    Raises:
        InvalidParameterError: If iterations < 1
    """
    if isinstance(iterations, bool) or not isinstance(iterations, numbers.Integral):
        raise InvalidParameterError(f"iterations must be an integer, got {iterations!r}")
    if iterations < 1:
        raise InvalidParameterError(f"iterations must be >= 1, got {iterations}")
    return int(iterations)


def validate_vertex_dists(
    edges: Iterable[Any],
    vertex_dists: Mapping[Hashable, Any],
) -> None:
    """
    Validate that every vertex referenced by a hyperedge has a distance.

    Args:
        edges: Hyperedges (objects with index/inbound/outbound attributes)
        vertex_dists: Suggested partial order of vertices

    Raises:
        UndefinedVertexError: If a referenced vertex is absent from the map
        ValidationError: If a distance is not an integer
    """
    missing: list[str] = []
    for edge in edges:
        for side in ("inbound", "outbound"):
            for vertex in getattr(edge, side):
                if vertex not in vertex_dists:
                    missing.append(f"Edge {edge.index!r}: {side} vertex {vertex!r} has no distance")

    if missing:
        raise UndefinedVertexError("Undefined vertices:\n" + "\n".join(missing))

    for vertex, dist in vertex_dists.items():
        if isinstance(dist, bool) or not isinstance(dist, numbers.Integral):
            raise ValidationError(f"Distance of vertex {vertex!r} must be an integer, got {dist!r}")


__all__ = [
    "ValidationError",
    "InvalidParameterError",
    "UndefinedVertexError",
    "InvalidHyperedgeError",
    "InvalidEntryTypeError",
    "LayoutConsistencyError",
    "GraphStructureWarning",
    "validate_length",
    "validate_iterations",
    "validate_vertex_dists",
]
