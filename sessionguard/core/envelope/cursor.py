# sessionguard/core/envelope/cursor.py
# ByteCursor -- bounds-checked reads over an ABI-encoded buffer.
#
# Every read validates position + width <= len(buffer) BEFORE slicing.
# A failed check raises OutOfBoundsError; Python slice truncation is never
# relied on, so a short buffer can never yield a short field.

from __future__ import annotations

from eth_utils import to_checksum_address

from sessionguard.core.exceptions import MalformedEncodingError, OutOfBoundsError
from sessionguard.utils.constants import ADDRESS_WIDTH, WORD_WIDTH

_ADDRESS_PADDING: bytes = b"\x00" * (WORD_WIDTH - ADDRESS_WIDTH)


class ByteCursor:
    """
    Read-only cursor over an immutable copy of a byte buffer.

    Sequential reads (read, read_word, read_address) advance the position.
    Absolute reads (read_at, read_word_at, slice) never move it.
    """

    def __init__(self, buffer: bytes, field_name: str = "buffer", start: int = 0) -> None:
        self._buffer: bytes = bytes(buffer)
        self._field_name: str = field_name
        self._position: int = 0
        self.seek(start)

    @property
    def position(self) -> int:
        return self._position

    @property
    def remaining(self) -> int:
        return len(self._buffer) - self._position

    def __len__(self) -> int:
        return len(self._buffer)

    # -----------------------------------------------------------------------
    # Bounds
    # -----------------------------------------------------------------------

    def _require(self, position: int, width: int) -> None:
        if position < 0 or width < 0 or position + width > len(self._buffer):
            raise OutOfBoundsError(
                field_name=self._field_name,
                position=position,
                width=width,
                buffer_length=len(self._buffer),
            )

    def seek(self, position: int) -> None:
        """Move to an absolute position. position == len(buffer) is allowed."""
        self._require(position, 0)
        self._position = position

    # -----------------------------------------------------------------------
    # Absolute reads
    # -----------------------------------------------------------------------

    def read_at(self, position: int, width: int) -> bytes:
        self._require(position, width)
        return self._buffer[position:position + width]

    def read_word_at(self, position: int) -> int:
        """Read one big-endian uint256 word."""
        return int.from_bytes(self.read_at(position, WORD_WIDTH), "big")

    def read_address_at(self, position: int) -> str:
        """
        Read one word holding a right-aligned address.

        The 12 high-order bytes must be zero; dirty padding is rejected the
        same way the ABI decoder of the destination would reject it.
        """
        word = self.read_at(position, WORD_WIDTH)
        padding, raw = word[:WORD_WIDTH - ADDRESS_WIDTH], word[WORD_WIDTH - ADDRESS_WIDTH:]
        if padding != _ADDRESS_PADDING:
            raise MalformedEncodingError(
                field_name=self._field_name,
                value=word,
                reason="address word at position " + str(position)
                + " has non-zero high-order bytes",
            )
        return to_checksum_address("0x" + raw.hex())

    def slice(self, position: int, length: int) -> bytes:
        """Return exactly `length` bytes starting at `position`."""
        return self.read_at(position, length)

    # -----------------------------------------------------------------------
    # Sequential reads
    # -----------------------------------------------------------------------

    def read(self, width: int) -> bytes:
        chunk = self.read_at(self._position, width)
        self._position += width
        return chunk

    def read_word(self) -> int:
        value = self.read_word_at(self._position)
        self._position += WORD_WIDTH
        return value

    def read_address(self) -> str:
        value = self.read_address_at(self._position)
        self._position += WORD_WIDTH
        return value


__all__ = ["ByteCursor"]
