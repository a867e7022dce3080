"""
tspgen/errors.py

Exception hierarchy shared by the generator, the serializer and the renderer.
"""


class TspGenError(Exception):
    """Base class for every error raised by tspgen."""
    pass


class InvalidConfiguration(TspGenError, ValueError):
    """Raised when generation parameters are outside their valid domain."""
    pass


class SerializationError(TspGenError):
    """Generic serialization error."""
    pass


class IntegrityError(SerializationError):
    """Raised when the stored checksum does not match the payload."""
    pass


class InvalidInstanceError(SerializationError):
    """Raised when an instance payload fails structural validation."""
    pass


class InvalidRouteError(TspGenError, ValueError):
    """Raised when a route references cities that do not exist."""
    pass
