import pytest

from sessionguard.core.exceptions import (
    AuthorizationError,
    CannotExecuteOrderError,
    ConditionError,
    ConfigurationError,
    InvalidCallValueError,
    InvalidConditionSelectorError,
    InvalidDestinationContractError,
    InvalidNonceError,
    InvalidOperationTagError,
    InvalidSelectorError,
    MalformedEncodingError,
    MalformedSignatureError,
    MaxConditionSizeExceededError,
    NonceRangeError,
    OutOfBoundsError,
    ReplayError,
    SessionGuardError,
    SignatureError,
    StructuralError,
    TruncatedPayloadError,
    UnauthorizedError,
)


class TestSessionGuardErrorBase:
    """SessionGuardError base class -- construction and attributes."""

    def test_construction_stores_message(self):
        exc = SessionGuardError(message="test message")
        assert exc.message == "test message"
        assert str(exc) == "test message"

    def test_construction_default_field_name_is_empty_string(self):
        assert SessionGuardError(message="msg").field_name == ""

    def test_construction_default_value_is_none(self):
        assert SessionGuardError(message="msg").value is None

    def test_empty_message_raises_value_error(self):
        with pytest.raises(ValueError, match="non-empty string"):
            SessionGuardError(message="")

    def test_non_string_field_name_raises_value_error(self):
        with pytest.raises(ValueError):
            SessionGuardError(message="msg", field_name=123)  # type: ignore[arg-type]

    def test_equality_same_type_same_values(self):
        a = SessionGuardError(message="msg", field_name="f", value=1)
        b = SessionGuardError(message="msg", field_name="f", value=1)
        assert a == b

    def test_equality_different_type(self):
        assert SessionGuardError(message="msg") != "not an exception"

    def test_is_hashable(self):
        exc = SessionGuardError(message="msg")
        assert exc in {exc}

    def test_repr_renders_bytes_as_hex(self):
        exc = SessionGuardError(message="msg", field_name="f", value=b"\xde\xad")
        assert "0xdead" in repr(exc)
        assert "SessionGuardError" in repr(exc)


class TestHierarchy:
    @pytest.mark.parametrize(
        "exc, base",
        [
            (InvalidSelectorError(selector=b"\x00" * 4, reason="r"), StructuralError),
            (OutOfBoundsError(field_name="f", position=0, width=32, buffer_length=4), StructuralError),
            (TruncatedPayloadError(field_name="f", length=2, required=4), StructuralError),
            (MalformedEncodingError(field_name="f", value=b"", reason="r"), StructuralError),
            (InvalidDestinationContractError(expected="a", got="b"), AuthorizationError),
            (InvalidOperationTagError(tag=b"\x00" * 4, policy_version="SMV3"), AuthorizationError),
            (InvalidCallValueError(tag=b"\x00" * 4, value=1, value_policy="MUST_BE_ZERO"), AuthorizationError),
            (UnauthorizedError(account=1, caller="x"), AuthorizationError),
            (InvalidNonceError(account=1, nonce=5), ReplayError),
            (MalformedSignatureError(reason="r"), SignatureError),
            (InvalidConditionSelectorError(tag=b"\x00" * 4), ConditionError),
            (MaxConditionSizeExceededError(count=9, limit=8), ConditionError),
            (CannotExecuteOrderError(reason="r"), ConditionError),
        ],
    )
    def test_category(self, exc, base):
        assert isinstance(exc, base)
        assert isinstance(exc, SessionGuardError)

    def test_categories_are_disjoint(self):
        exc = InvalidNonceError(account=1, nonce=5)
        assert not isinstance(exc, AuthorizationError)
        assert not isinstance(exc, StructuralError)


class TestMessages:
    def test_configuration_error_message(self):
        exc = ConfigurationError(field_name="chain_id", value=0, constraint="must be > 0")
        assert exc.message == "ConfigurationError: field 'chain_id' violates constraint 'must be > 0': got 0."
        assert exc.constraint == "must be > 0"

    def test_configuration_error_empty_field_name_raises(self):
        with pytest.raises(ValueError, match="non-empty"):
            ConfigurationError(field_name="", value=0, constraint="c")

    def test_out_of_bounds_attributes(self):
        exc = OutOfBoundsError(field_name="call_data", position=100, width=32, buffer_length=120)
        assert exc.position == 100
        assert exc.width == 32
        assert exc.buffer_length == 120
        assert "call_data" in exc.message

    def test_invalid_selector_renders_hex(self):
        exc = InvalidSelectorError(selector=bytes.fromhex("deadbeef"), reason="nope")
        assert "0xdeadbeef" in exc.message
        assert exc.value == bytes.fromhex("deadbeef")

    def test_invalid_call_value_keeps_tag_and_policy(self):
        exc = InvalidCallValueError(tag=b"\x01\x02\x03\x04", value=7, value_policy="MUST_BE_ZERO")
        assert exc.tag == b"\x01\x02\x03\x04"
        assert exc.value == 7
        assert exc.value_policy == "MUST_BE_ZERO"

    def test_invalid_nonce_message(self):
        exc = InvalidNonceError(account="0xabc", nonce=5)
        assert "nonce 5" in exc.message
        assert exc.account == "0xabc"

    def test_message_is_deterministic(self):
        a = MaxConditionSizeExceededError(count=9, limit=8)
        b = MaxConditionSizeExceededError(count=9, limit=8)
        assert a == b
        assert a.message == b.message

    def test_can_be_caught_as_base(self):
        with pytest.raises(SessionGuardError):
            raise TruncatedPayloadError(field_name="inner_payload", length=3, required=4)
