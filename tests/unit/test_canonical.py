"""Unit tests for the canonical record encoder.

Covers key ordering, compactness, array order, the single textual form
per number, and rejection of malformed input.
"""

from __future__ import annotations

import json
import math

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from recordledger.canonical import (
    canonical_json_bytes,
    canonical_json_text,
    format_number,
    sort_keys_recursive,
)
from recordledger.errors import CanonicalEncodingError

# ---------------------------------------------------------------------------
# Key ordering and layout
# ---------------------------------------------------------------------------


class TestKeyOrdering:
    def test_top_level_keys_sorted(self) -> None:
        assert canonical_json_text({"VBAT": 3.3, "Owner": "X", "SNR": 0.5}) == '{"Owner":"X","SNR":0.5,"VBAT":3.3}'

    def test_nested_mappings_sorted(self) -> None:
        value = {"b": {"z": 1, "a": 2}, "a": [{"y": 1, "x": 2}]}
        assert canonical_json_text(value) == '{"a":[{"x":2,"y":1}],"b":{"a":2,"z":1}}'

    def test_uppercase_sorts_before_lowercase(self) -> None:
        """Code-point order puts 'Z' (0x5A) before 'a' (0x61)."""
        assert canonical_json_text({"docType": "asset", "Owner": "X"}) == '{"Owner":"X","docType":"asset"}'

    def test_sort_keys_recursive_rebuilds_mappings(self) -> None:
        result = sort_keys_recursive({"b": 1, "a": {"d": 1, "c": 2}, "l": ({"z": 0, "y": 1},)})
        assert list(result) == ["a", "b", "l"]
        assert list(result["a"]) == ["c", "d"]
        assert list(result["l"][0]) == ["y", "z"]

    def test_non_string_key_rejected(self) -> None:
        with pytest.raises(CanonicalEncodingError):
            canonical_json_text({1: "a"})


class TestLayout:
    def test_no_whitespace(self) -> None:
        text = canonical_json_text({"a": [1, 2, {"b": "c d"}]})
        assert text == '{"a":[1,2,{"b":"c d"}]}'

    def test_arrays_preserve_order(self) -> None:
        assert canonical_json_text([3, 1, 2]) == "[3,1,2]"

    def test_tuple_encodes_like_list(self) -> None:
        assert canonical_json_text((0.5, 0.5, 0.5)) == canonical_json_text([0.5, 0.5, 0.5])

    def test_literals(self) -> None:
        assert canonical_json_text({"t": True, "f": False, "n": None}) == '{"f":false,"n":null,"t":true}'

    def test_non_ascii_emitted_as_utf8(self) -> None:
        assert canonical_json_bytes({"Owner": "Chidera's café"}) == '{"Owner":"Chidera\'s café"}'.encode()

    def test_control_characters_escaped(self) -> None:
        assert canonical_json_text("a\nb\"") == '"a\\nb\\""'

    def test_lone_surrogate_rejected(self) -> None:
        with pytest.raises(CanonicalEncodingError):
            canonical_json_bytes({"k": "\ud800"})

    def test_unsupported_type_rejected(self) -> None:
        with pytest.raises(CanonicalEncodingError):
            canonical_json_text({"k": {1, 2}})

    def test_output_parses_back(self) -> None:
        value = {"ID": "dev-1", "Gyroscope": [0.5, -1, 2.25], "docType": "asset"}
        assert json.loads(canonical_json_bytes(value)) == value


# ---------------------------------------------------------------------------
# Numbers
# ---------------------------------------------------------------------------


class TestNumbers:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            (3, "3"),
            (3.0, "3"),
            (-0.0, "0"),
            (0.5, "0.5"),
            (-2.5, "-2.5"),
            (45.464664, "45.464664"),
            (1000.5, "1000.5"),
            (100.0, "100"),
            (0.000001, "0.000001"),
            (1e-7, "1e-7"),
            (1.5e-10, "1.5e-10"),
            (1e20, "100000000000000000000"),
            (1e21, "1e+21"),
            (1.5e22, "1.5e+22"),
            (1.2345678901234568e20, "123456789012345680000"),
            (2**53 - 1, "9007199254740991"),
        ],
    )
    def test_canonical_form(self, value: float, expected: str) -> None:
        assert format_number(value) == expected

    @pytest.mark.parametrize("value", [math.nan, math.inf, -math.inf])
    def test_non_finite_rejected(self, value: float) -> None:
        with pytest.raises(CanonicalEncodingError):
            canonical_json_text({"x": value})

    def test_bool_is_not_a_number(self) -> None:
        with pytest.raises(CanonicalEncodingError):
            format_number(True)

    @pytest.mark.parametrize("value", [2**53, -(2**53), 10**30])
    def test_integers_outside_ijson_range_rejected(self, value: int) -> None:
        with pytest.raises(CanonicalEncodingError):
            canonical_json_text({"x": value})

    @given(st.floats(allow_nan=False, allow_infinity=False))
    def test_rendered_float_round_trips(self, value: float) -> None:
        assert float(format_number(value)) == value

    @given(st.integers(min_value=-(2**53 - 1), max_value=2**53 - 1))
    def test_integral_float_matches_int(self, value: int) -> None:
        assert format_number(float(value)) == format_number(value)


# ---------------------------------------------------------------------------
# Determinism
# ---------------------------------------------------------------------------

_scalars = st.one_of(
    st.none(),
    st.booleans(),
    st.integers(min_value=-(10**12), max_value=10**12),
    st.floats(allow_nan=False, allow_infinity=False),
    st.text(alphabet=st.characters(exclude_categories=("Cs",)), max_size=20),
)
_fields = st.dictionaries(
    st.text(alphabet=st.characters(exclude_categories=("Cs",)), max_size=12),
    st.one_of(_scalars, st.lists(_scalars, max_size=4)),
    max_size=12,
)


class TestDeterminism:
    @settings(max_examples=200)
    @given(_fields, st.randoms(use_true_random=False))
    def test_insertion_order_does_not_change_bytes(self, fields: dict, rnd) -> None:
        items = list(fields.items())
        rnd.shuffle(items)
        reordered = dict(items)
        assert canonical_json_bytes(reordered) == canonical_json_bytes(fields)

    @given(_fields)
    def test_encoding_is_stable_under_reencode(self, fields: dict) -> None:
        first = canonical_json_bytes(fields)
        assert canonical_json_bytes(json.loads(first)) == first
