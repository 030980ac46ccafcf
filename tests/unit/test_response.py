"""
Unit tests for response lines.
"""

from lineserver.protocol.response import (
    ResponseKind,
    domain_error,
    farewell,
    format_error,
    result,
)


class TestFactories:

    def test_result_uses_str(self):
        response = result(55)

        assert response.kind is ResponseKind.RESULT
        assert response.text == "55"
        assert not response.is_error

    def test_result_big_integer(self):
        assert result(2 ** 100).text == "1267650600228229401496703205376"

    def test_format_error_echoes_raw_input(self):
        response = format_error("abc")

        assert response.kind is ResponseKind.FORMAT_ERROR
        assert response.text == "Error format: abc"
        assert response.is_error

    def test_format_error_echo_is_verbatim(self):
        assert format_error("  1 2\t").text == "Error format:   1 2\t"
        assert format_error("").text == "Error format: "

    def test_domain_error(self):
        response = domain_error("-1")

        assert response.kind is ResponseKind.DOMAIN_ERROR
        assert response.text == "Error domain: -1"
        assert response.is_error

    def test_farewell_default(self):
        response = farewell()

        assert response.kind is ResponseKind.FAREWELL
        assert response.text == "good bye!"
        assert not response.is_error

    def test_farewell_custom(self):
        assert farewell("bye").text == "bye"

