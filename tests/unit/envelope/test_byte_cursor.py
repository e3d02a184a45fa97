import pytest

from sessionguard.core.envelope import ByteCursor
from sessionguard.core.exceptions import MalformedEncodingError, OutOfBoundsError

ADDRESS_WORD = b"\x00" * 12 + bytes.fromhex("11" * 20)


class TestBounds:
    def test_read_within_bounds(self):
        cursor = ByteCursor(b"\x01\x02\x03\x04")
        assert cursor.read_at(1, 2) == b"\x02\x03"

    def test_read_exactly_to_end(self):
        cursor = ByteCursor(b"\x01\x02\x03\x04")
        assert cursor.read_at(0, 4) == b"\x01\x02\x03\x04"

    def test_read_past_end_raises(self):
        cursor = ByteCursor(b"\x01\x02\x03\x04")
        with pytest.raises(OutOfBoundsError) as info:
            cursor.read_at(2, 3)
        assert info.value.position == 2
        assert info.value.width == 3
        assert info.value.buffer_length == 4

    def test_never_returns_truncated_slice(self):
        cursor = ByteCursor(b"\x00" * 31)
        with pytest.raises(OutOfBoundsError):
            cursor.read_word_at(0)

    def test_negative_position_raises(self):
        with pytest.raises(OutOfBoundsError):
            ByteCursor(b"\x00" * 4).read_at(-1, 1)

    def test_huge_offset_raises(self):
        with pytest.raises(OutOfBoundsError):
            ByteCursor(b"\x00" * 64).read_word_at(2 ** 255)

    def test_zero_width_at_end_is_empty(self):
        assert ByteCursor(b"\x00" * 4).slice(4, 0) == b""

    def test_seek_past_end_raises(self):
        with pytest.raises(OutOfBoundsError):
            ByteCursor(b"\x00" * 4, start=5)

    def test_field_name_in_error(self):
        with pytest.raises(OutOfBoundsError) as info:
            ByteCursor(b"", field_name="call_data").read(1)
        assert info.value.field_name == "call_data"


class TestSequentialReads:
    def test_read_word_advances(self):
        cursor = ByteCursor((7).to_bytes(32, "big") + (9).to_bytes(32, "big"))
        assert cursor.read_word() == 7
        assert cursor.position == 32
        assert cursor.read_word() == 9
        assert cursor.remaining == 0

    def test_absolute_read_does_not_move(self):
        cursor = ByteCursor((7).to_bytes(32, "big"))
        cursor.read_word_at(0)
        assert cursor.position == 0

    def test_failed_read_does_not_move(self):
        cursor = ByteCursor(b"\x00" * 40)
        cursor.read_word()
        with pytest.raises(OutOfBoundsError):
            cursor.read_word()
        assert cursor.position == 32

    def test_len(self):
        assert len(ByteCursor(b"\x00" * 10)) == 10


class TestAddressReads:
    def test_clean_address(self):
        cursor = ByteCursor(ADDRESS_WORD)
        assert cursor.read_address() == "0x" + "11" * 20

    def test_returns_checksummed(self):
        word = b"\x00" * 12 + bytes.fromhex("5ff137d4b0fdcd49dca30c7cf57e578a026d2789")
        address = ByteCursor(word).read_address_at(0)
        assert address.lower() == "0x5ff137d4b0fdcd49dca30c7cf57e578a026d2789"
        assert address != address.lower()

    def test_dirty_padding_rejected(self):
        dirty = b"\x01" + ADDRESS_WORD[1:]
        with pytest.raises(MalformedEncodingError):
            ByteCursor(dirty).read_address_at(0)

    def test_short_address_word_rejected(self):
        with pytest.raises(OutOfBoundsError):
            ByteCursor(ADDRESS_WORD[:31]).read_address()
