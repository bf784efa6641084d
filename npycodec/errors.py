"""Exception hierarchy for NPY parse / marshal errors."""


class NpyError(Exception):
    """Base exception for NPY format / marshal errors."""


class InvalidFormat(NpyError):
    """Bytes are not a valid or recognized NPY buffer."""


class UnsupportedType(NpyError):
    """Descriptor token outside the supported dtype grammar."""

    def __init__(self, token, reason: str = "unsupported dtype") -> None:
        self.token = token
        super().__init__(f"{reason}: {token!r}")


class UnsupportedHeaderType(InvalidFormat, UnsupportedType):
    """Header ``descr`` value rejected by the type descriptor parser."""

    def __init__(self, token) -> None:
        UnsupportedType.__init__(self, token, "header has unsupported descr")


class TypeMismatch(NpyError):
    """On-disk element type differs from the requested destination type."""


class DimensionMismatch(NpyError):
    """On-disk shape is incompatible with a fixed-shape destination."""


class MissingDestination(NpyError, ValueError):
    """A ``None`` destination was passed to a read call."""


class EntryNotFound(NpyError, KeyError):
    """Archive has no entry with the requested name."""
