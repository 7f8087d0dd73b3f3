class MarkerError(Exception):
    """Base class for errors raised by marker containers."""


class InvalidArgument(MarkerError, TypeError):
    pass


class InvalidEnumValue(MarkerError, ValueError):
    pass


class UnknownMarker(MarkerError, LookupError):
    pass


def bad_arg_type(arg: int, func: str, expected: str, got) -> InvalidArgument:
    return InvalidArgument(
        f"bad argument #{arg} to {func}: {expected} expected, got {type(got).__name__}"
    )


def bad_field_type(field: str, expected: str, got) -> InvalidArgument:
    return InvalidArgument(f"bad field {field}: {expected} expected, got {type(got).__name__}")
