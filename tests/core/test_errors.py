"""Tests for error types and codes."""

import pytest

from zclgen.core.errors import (
    ConfigError,
    ErrorCode,
    InternalError,
    ParseError,
    ReferenceLookupError,
    SchemaValidationError,
    StoreError,
    TemplateError,
    ZclGenError,
)


class TestErrorCode:
    """Error code value tests."""

    @pytest.mark.parametrize(
        ("code", "expected_range"),
        [
            (ErrorCode.CONFIG_PARSE_ERROR, 2000),
            (ErrorCode.PARSE_AGGREGATE, 3000),
            (ErrorCode.REFERENCE_DEFAULT_UNMATCHED, 4000),
            (ErrorCode.VALIDATION_FAILED, 5000),
            (ErrorCode.STORE_FAILURE, 6000),
            (ErrorCode.TEMPLATE_RENDER_ERROR, 7000),
            (ErrorCode.INTERNAL_ERROR, 9000),
        ],
    )
    def test_given_error_code_when_checked_then_in_correct_range(
        self, code: ErrorCode, expected_range: int
    ) -> None:
        """Error codes fall within their designated numeric range."""
        assert expected_range <= code.value < expected_range + 1000


class TestZclGenError:
    """Base error behavior tests."""

    def test_given_error_when_to_dict_then_serializes_all_fields(self) -> None:
        # Given
        error = ZclGenError(
            code=ErrorCode.CONFIG_PARSE_ERROR,
            message="Test message",
            retryable=True,
            details={"key": "value"},
        )

        # When
        result = error.to_dict()

        # Then
        assert result == {
            "code": 2001,
            "error": "CONFIG_PARSE_ERROR",
            "message": "Test message",
            "retryable": True,
            "details": {"key": "value"},
        }

    def test_given_error_when_str_then_human_readable(self) -> None:
        error = InternalError.unexpected("Something broke")

        assert str(error) == "[9001] INTERNAL_ERROR: Internal error: Something broke"

    def test_subclasses_are_catchable_as_base(self) -> None:
        with pytest.raises(ZclGenError):
            raise StoreError.backend("insert", RuntimeError("disk full"))


class TestFactories:
    @pytest.mark.parametrize(
        ("error", "expected_code"),
        [
            (ConfigError.parse_error("/a.yaml", "bad"), ErrorCode.CONFIG_PARSE_ERROR),
            (ConfigError.invalid_value("loader", 0, "too small"), ErrorCode.CONFIG_INVALID_VALUE),
            (ParseError.malformed("/x.xml", "eof"), ErrorCode.PARSE_MALFORMED),
            (ParseError.missing_field("/x.json", "xmlFile"), ErrorCode.PARSE_MISSING_FIELD),
            (ReferenceLookupError.not_found("enum", "Foo"), ErrorCode.REFERENCE_NOT_FOUND),
            (
                ReferenceLookupError.unattached_extension(0x0099, None),
                ErrorCode.REFERENCE_EXTENSION_UNATTACHED,
            ),
            (SchemaValidationError.failed("/x.xml", []), ErrorCode.VALIDATION_FAILED),
            (TemplateError.helper_error("mod", "boom"), ErrorCode.TEMPLATE_HELPER_ERROR),
            (TemplateError.manifest_error("/t.json", "bad"), ErrorCode.TEMPLATE_MANIFEST_ERROR),
        ],
    )
    def test_given_factory_when_called_then_correct_code(
        self, error: ZclGenError, expected_code: ErrorCode
    ) -> None:
        assert error.code == expected_code

    def test_lookup_miss_message(self) -> None:
        error = ReferenceLookupError.not_found("bitmap", "OnOffControl")

        assert error.message == "Invalid bitmap: OnOffControl"

    def test_unmatched_default_message(self) -> None:
        error = ReferenceLookupError.unmatched_default("defaultResponsePolicy", "sometimes")

        assert error.message == (
            "Default value for: defaultResponsePolicy/sometimes does not match an option."
        )

    def test_unattached_extension_formats_code(self) -> None:
        error = ReferenceLookupError.unattached_extension(0x0099, 0x1002)

        assert "0x0099" in error.message
        assert error.details["manufacturer_code"] == 0x1002

    def test_parse_error_exposes_path(self) -> None:
        assert ParseError.malformed("/zcl/general.xml", "eof").path == "/zcl/general.xml"

    def test_aggregate_lists_every_path(self) -> None:
        # Given
        failures = [ParseError.malformed("/a.xml", "eof"), ParseError.missing_field("/b.xml", "name")]

        # When
        error = ParseError.aggregate(failures)

        # Then
        assert error.code == ErrorCode.PARSE_AGGREGATE
        assert error.details["paths"] == ["/a.xml", "/b.xml"]
        assert "2 file(s)" in error.message

    def test_validation_without_errors_has_reason(self) -> None:
        error = SchemaValidationError.failed("/x.xml", [])

        assert "unknown reason" in error.message

    def test_compile_error_keeps_line(self) -> None:
        error = TemplateError.compile_error("clusters", "unexpected end", 3)

        assert error.details == {"name": "clusters", "reason": "unexpected end", "line": 3}
