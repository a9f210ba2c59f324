"""
Property-based tests for the condensed difference field.

Properties:
- Decoding an encoded mapping returns it unchanged, in order
- Whitespace before a column name and empty entries never change the result
- Values may contain ':' because only the first ':' ends the column name
"""

from hypothesis import given, strategies as st

from tablediff.compare import decode_diff_columns, encode_diff_columns, format_value_pair

names = st.text(alphabet="abcdefghijklmnopqrstuvwxyz_0123456789 ", min_size=1, max_size=20).map(
    str.strip
).filter(bool)

# Any text without ';', including "" and values with surrounding spaces
values = st.one_of(
    st.none(),
    st.integers(min_value=-10**9, max_value=10**9),
    st.text(alphabet="abcdefghijXYZ0123456789,.:-'\"/ ", max_size=20),
)

differences = st.dictionaries(
    keys=names,
    values=st.tuples(values, values).map(lambda pair: format_value_pair(*pair)),
    max_size=8,
)


@given(mapping=differences)
def test_decode_inverts_encode(mapping):
    decoded = decode_diff_columns(encode_diff_columns(mapping))

    assert decoded == mapping
    assert list(decoded) == list(mapping)


@given(mapping=differences.filter(bool), padding=st.sampled_from(["", " ", "  ", "; ", " ;  "]))
def test_leading_padding_and_empty_entries_are_ignored(mapping, padding):
    entries = [f"{padding}{name}:{pair}" for name, pair in mapping.items()]

    assert decode_diff_columns(";".join(entries) + ";" + padding) == mapping


@given(left=values, right=values)
def test_empty_values_survive_round_trip(left, right):
    mapping = {"note": format_value_pair(left, right), "price": format_value_pair("", right)}

    assert decode_diff_columns(encode_diff_columns(mapping)) == mapping


@given(name=names, left=values, right=values)
def test_only_first_colon_ends_the_name(name, left, right):
    pair = format_value_pair(left, right)

    assert decode_diff_columns(f"{name}:{pair}") == {name: pair}
