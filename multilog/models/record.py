"""
Record dataclass and the binary codec for the data file.

Format: [tombstone:1][key_len:4][key][value:4]

All integers are little-endian. The value is a signed 32-bit integer.
There is no checksum and no length trailer, so a reader can only find
record boundaries by walking forward field by field.
"""

from dataclasses import dataclass
from typing import BinaryIO

from multilog.models.exceptions import KeyTooLongError, MalformedRecordError

# Sanity bound on the declared key length. A larger value in the file is
# taken as a sign of a corrupt or partially written record.
MAX_KEY_LENGTH = 256

INT32_MIN = -(2**31)
INT32_MAX = 2**31 - 1

TOMBSTONE_SIZE = 1
KEY_LEN_SIZE = 4
VALUE_SIZE = 4
HEADER_SIZE = TOMBSTONE_SIZE + KEY_LEN_SIZE

LIVE = 0
DELETED = 1

BYTE_ORDER = "little"


@dataclass(frozen=True)
class Record:
    """
    A single (key, value) entry in the data file.

    Attributes:
        tombstone: True once the record has been deleted.
        key: The string key.
        value: The int32 payload.
    """

    tombstone: bool
    key: str
    value: int

    def __bytes__(self) -> bytes:
        return encode(self.tombstone, self.key, self.value)

    def size_bytes(self) -> int:
        return encoded_size(self.key)


def validate_value(value: int) -> None:
    if not INT32_MIN <= value <= INT32_MAX:
        raise ValueError(f"value out of int32 range: {value}")


def encode_key(key: str) -> bytes:
    """Encode a key to bytes, enforcing the maximum key length."""
    key_bytes = key.encode("utf-8")
    if len(key_bytes) > MAX_KEY_LENGTH:
        raise KeyTooLongError(len(key_bytes), MAX_KEY_LENGTH)
    return key_bytes


def encoded_size(key: str) -> int:
    return HEADER_SIZE + len(key.encode("utf-8")) + VALUE_SIZE


def encode(tombstone: bool, key: str, value: int) -> bytes:
    """
    Serialize one record.

    Args:
        tombstone: Whether the record is deleted.
        key: The key, at most MAX_KEY_LENGTH bytes once UTF-8 encoded.
        value: Signed 32-bit integer.

    Returns:
        The encoded record bytes.

    Raises:
        KeyTooLongError: If the encoded key exceeds MAX_KEY_LENGTH.
        ValueError: If value is outside the int32 range.
    """
    key_bytes = encode_key(key)
    validate_value(value)

    return (
        (DELETED if tombstone else LIVE).to_bytes(TOMBSTONE_SIZE, BYTE_ORDER)
        + len(key_bytes).to_bytes(KEY_LEN_SIZE, BYTE_ORDER)
        + key_bytes
        + value.to_bytes(VALUE_SIZE, BYTE_ORDER, signed=True)
    )


def decode(stream: BinaryIO, offset: int) -> Record | None:
    """
    Read the record stored at offset.

    Leaves the stream positioned right after the record on success.

    Args:
        stream: Binary stream opened for reading.
        offset: Byte offset of the record's tombstone flag.

    Returns:
        The decoded Record, or None if the stream ends before a whole
        record could be read.

    Raises:
        MalformedRecordError: If the declared key length exceeds
            MAX_KEY_LENGTH or the key bytes are not valid UTF-8.
    """
    stream.seek(offset)

    header = stream.read(HEADER_SIZE)
    if len(header) < HEADER_SIZE:
        return None

    tombstone = header[0] != LIVE
    key_len = int.from_bytes(header[TOMBSTONE_SIZE:], BYTE_ORDER)
    if key_len > MAX_KEY_LENGTH:
        raise MalformedRecordError(
            offset, f"key length {key_len} exceeds {MAX_KEY_LENGTH}"
        )

    key_bytes = stream.read(key_len)
    if len(key_bytes) < key_len:
        return None

    value_bytes = stream.read(VALUE_SIZE)
    if len(value_bytes) < VALUE_SIZE:
        return None

    try:
        key = key_bytes.decode("utf-8")
    except UnicodeDecodeError as e:
        raise MalformedRecordError(offset, f"key is not valid UTF-8: {e}") from e

    value = int.from_bytes(value_bytes, BYTE_ORDER, signed=True)
    return Record(tombstone=tombstone, key=key, value=value)


def mark_tombstone(stream: BinaryIO, offset: int) -> None:
    """
    Flip the tombstone flag of the record at offset.

    Only the single flag byte is written; key and value are untouched.
    """
    stream.seek(offset)
    stream.write(DELETED.to_bytes(TOMBSTONE_SIZE, BYTE_ORDER))
