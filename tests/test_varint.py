import pytest

from gamequery import MALFORMED_HEADER, TRUNCATED, ByteCursor, QueryError
from gamequery.varint import packstring, packvarint, readvarint

KNOWN = [
	(0, b"\x00"),
	(1, b"\x01"),
	(127, b"\x7F"),
	(128, b"\x80\x01"),
	(300, b"\xAC\x02"),
	(25565, b"\xDD\xC7\x01"),
	(2147483647, b"\xFF\xFF\xFF\xFF\x07"),
	(-1, b"\xFF\xFF\xFF\xFF\x0F"),
	(-2147483648, b"\x80\x80\x80\x80\x08"),
]

@pytest.mark.parametrize("value, encoded", KNOWN)
def test_known_encodings(value, encoded):
	assert packvarint(value) == encoded
	cursor = ByteCursor(encoded + b"tail")
	assert readvarint(cursor) == value
	assert cursor.rest() == b"tail"

def test_overlong_varint_is_rejected():
	with pytest.raises(QueryError) as error:
		readvarint(ByteCursor(b"\xFF\xFF\xFF\xFF\xFF\x01"))
	assert error.value.kind == MALFORMED_HEADER

def test_varint_cut_short():
	with pytest.raises(QueryError) as error:
		readvarint(ByteCursor(b"\x80\x80"))
	assert error.value.kind == TRUNCATED

def test_packstring_prefixes_utf8_length():
	assert packstring("localhost") == b"\x09localhost"
	assert packstring("é") == b"\x02\xc3\xa9"
