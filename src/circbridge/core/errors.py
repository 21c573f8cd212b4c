from __future__ import annotations


class CircBridgeError(ValueError):
    """Base class for every failure raised by circbridge."""


class FormatError(CircBridgeError):
    """Bad magic, section layout, section size or truncated container."""


class UnsupportedVersion(FormatError):
    pass


class UnsupportedCurve(CircBridgeError):
    """Field width or modulus is not the BN254 scalar field."""


class RangeError(CircBridgeError, IndexError):
    """Wire/witness index out of bounds or mismatched lengths."""


class MissingWitness(CircBridgeError):
    pass


class SerializationError(CircBridgeError):
    """Malformed JSON, non-canonical decimal, or off-curve point on read."""


class PointAtInfinity(SerializationError):
    pass


class CircuitConsumed(CircBridgeError):
    """A circuit instance was synthesized more than once."""
