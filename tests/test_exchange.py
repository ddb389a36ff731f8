import bz2, random, struct, zlib

import pytest

from gamequery import (CHECKSUM_MISMATCH, INCOMPLETE_REASSEMBLY, MALFORMED_COMPRESSED,
	MALFORMED_HEADER, NO_RESPONSE, QueryError)
from gamequery.exchange import SINGLE, SPLIT, Reassembler, challenge_exchange

PAYLOAD = SINGLE + b"E\x02\x00" + b"sv_gravity\x00800\x00mp_timelimit\x0030\x00" * 40

def split(payload, total, requestid = 0x11, size = 300):
	parts = [payload[index:index + size] for index in range(0, len(payload), size)]
	assert len(parts) == total
	return [SPLIT + struct.pack("<IBBH", requestid, total, number, size) + part for (number, part) in enumerate(parts)]

def compressed(payload, requestid = 0x80000022, size = 16, crc = None):
	data = bz2.compress(payload)
	parts = [data[index:index + size] for index in range(0, len(data), size)]
	total = len(parts)
	packets = []
	for (number, part) in enumerate(parts):
		header = SPLIT + struct.pack("<IBBH", requestid, total, number, size)
		if number == 0:
			header += struct.pack("<II", len(payload), zlib.crc32(payload) if crc is None else crc)
		packets.append(header + part)
	return packets

def feeder(packets):
	queue = list(packets)
	def fetch():
		if not queue:
			raise QueryError(NO_RESPONSE, "timed out")
		return queue.pop(0)
	return fetch

class Sender:
	def __init__(self, *replies):
		self.replies = list(replies)
		self.sent = []

	def __call__(self, packet):
		self.sent.append(packet)
		return self.replies.pop(0)

def token(reply):
	return reply[5:9] if reply[4:5] == b"A" else None

def test_no_challenge_sends_once():
	send = Sender(SINGLE + b"Idata")
	assert challenge_exchange(send, b"query", token, lambda request, token: request + token) == SINGLE + b"Idata"
	assert send.sent == [b"query"]

def test_challenge_is_answered_once():
	send = Sender(SINGLE + b"A\x01\x02\x03\x04", SINGLE + b"Idata")
	reply = challenge_exchange(send, b"query", token, lambda request, token: request + token)
	assert reply == SINGLE + b"Idata"
	assert send.sent == [b"query", b"query\x01\x02\x03\x04"]

def test_second_challenge_is_handed_back():
	send = Sender(SINGLE + b"A\x01\x02\x03\x04", SINGLE + b"A\x05\x06\x07\x08", SINGLE + b"Idata")
	reply = challenge_exchange(send, b"query", token, lambda request, token: request + token)
	assert reply == SINGLE + b"A\x05\x06\x07\x08"
	assert len(send.sent) == 2

def test_timeout_propagates():
	def send(packet):
		raise QueryError(NO_RESPONSE, "timed out")
	with pytest.raises(QueryError) as error:
		challenge_exchange(send, b"query", token, lambda request, token: request + token)
	assert error.value.kind == NO_RESPONSE

def test_reassembly_strips_prefix():
	packets = split(PAYLOAD, 5)
	assert Reassembler(feeder(packets[1:])).reassemble(packets[0]) == PAYLOAD[4:]

def test_reassembly_is_order_independent():
	packets = split(PAYLOAD, 5)
	expected = Reassembler(feeder(packets[1:])).reassemble(packets[0])
	for seed in range(10):
		shuffled = list(packets)
		random.Random(seed).shuffle(shuffled)
		assert Reassembler(feeder(shuffled[1:])).reassemble(shuffled[0]) == expected

def test_foreign_request_ids_are_ignored():
	packets = split(PAYLOAD, 5)
	stray = split(PAYLOAD, 5, requestid = 0x99)
	fetch = feeder([stray[2], packets[1], stray[0], packets[2], packets[3], packets[4]])
	assert Reassembler(fetch).reassemble(packets[0]) == PAYLOAD[4:]

def test_missing_part_is_incomplete():
	packets = split(PAYLOAD, 5)
	with pytest.raises(QueryError) as error:
		Reassembler(feeder(packets[1:4])).reassemble(packets[0])
	assert error.value.kind == INCOMPLETE_REASSEMBLY

def test_short_split_header():
	parts = [PAYLOAD[:500], PAYLOAD[500:]]
	packets = [SPLIT + struct.pack("<IBB", 7, 2, number) + part for (number, part) in enumerate(parts)]
	assert Reassembler(feeder([packets[0]]), short_split = True).reassemble(packets[1]) == PAYLOAD[4:]

def test_goldsource_split_byte():
	parts = [PAYLOAD[:600], PAYLOAD[600:]]
	packets = [SPLIT + struct.pack("<IB", 3, (number << 4) | 2) + part for (number, part) in enumerate(parts)]
	assert Reassembler(feeder([packets[1]]), goldsource = True).reassemble(packets[0]) == PAYLOAD[4:]

def test_compressed_reply_is_checked_and_unpacked():
	packets = compressed(PAYLOAD)
	assert len(packets) > 1
	assert Reassembler(feeder(packets[1:])).reassemble(packets[0]) == PAYLOAD[4:]

def test_checksum_mismatch():
	packets = compressed(PAYLOAD, crc = 12345)
	with pytest.raises(QueryError) as error:
		Reassembler(feeder(packets[1:])).reassemble(packets[0])
	assert error.value.kind == CHECKSUM_MISMATCH

def test_corrupt_bzip2_stream():
	packet = SPLIT + struct.pack("<IBBHII", 0x80000001, 1, 0, 100, 10, 0) + b"not bzip2 data"
	with pytest.raises(QueryError) as error:
		Reassembler(feeder([])).reassemble(packet)
	assert error.value.kind == MALFORMED_COMPRESSED

def test_index_beyond_total_is_malformed():
	packet = SPLIT + struct.pack("<IBBH", 1, 2, 5, 100) + b"x"
	with pytest.raises(QueryError) as error:
		Reassembler(feeder([])).reassemble(packet)
	assert error.value.kind == MALFORMED_HEADER
