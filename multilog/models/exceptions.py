"""
Custom exceptions for the storage engine.
"""


class MalformedRecordError(Exception):
    """
    Raised when a record in the data file cannot be decoded.

    The scanner treats this as the end of the readable log: everything
    from the offending offset onwards is trailing garbage.
    """

    def __init__(self, offset: int, reason: str):
        """
        Initialize malformed record error.

        Args:
            offset: File offset of the record that failed to decode.
            reason: Human readable description of the problem.
        """
        self.offset = offset
        self.reason = reason
        super().__init__(f"Malformed record at offset {offset}: {reason}")


class KeyTooLongError(ValueError):
    """Raised when a key would not fit the record format."""

    def __init__(self, key_len: int, max_len: int):
        self.key_len = key_len
        self.max_len = max_len
        super().__init__(
            f"Key is {key_len} bytes, maximum is {max_len} bytes"
        )


class EngineStateError(RuntimeError):
    """Raised when an operation is issued while the engine is not ready."""
