"""Tests for roost.routing.params: path parameter converters."""

import pytest

from roost.routing.params import CONVERTERS, Converter, convert_param


class TestConvertParam:
    def test_str(self) -> None:
        assert convert_param("ada", "str") == "ada"

    def test_int(self) -> None:
        assert convert_param("42", "int") == 42

    def test_float(self) -> None:
        assert convert_param("2.5", "float") == 2.5

    def test_path(self) -> None:
        assert convert_param("a/b", "path") == "a/b"

    def test_invalid_value(self) -> None:
        assert convert_param("abc", "int") is None

    def test_int_beyond_digit_limit(self) -> None:
        assert convert_param("9" * 5000, "int") is None

    def test_unknown_converter(self) -> None:
        with pytest.raises(KeyError):
            convert_param("x", "uuid")

    def test_known_converters(self) -> None:
        assert set(CONVERTERS) == {"str", "int", "float", "path"}


class TestConverter:
    def test_pattern_and_parse(self) -> None:
        converter = CONVERTERS["int"]
        assert converter.pattern == r"\d+"
        assert converter.convert("7") == 7

    def test_overflow_rejected(self) -> None:
        def huge(value: str) -> int:
            raise OverflowError(value)

        assert Converter(r".+", huge).convert("x") is None
