"""
Variable length integers as used by the Minecraft protocol: 7 bits per
byte, least significant group first, high bit set on every byte but the
last. Values are 32 bit two's complement, so at most 5 bytes.
"""

from . import *

MAXBYTES = 5

def packvarint(value):
	value &= 0xFFFFFFFF
	output = bytearray()
	while True:
		byte = value & 0x7F
		value >>= 7
		if value:
			output.append(byte | 0x80)
		else:
			output.append(byte)
			return bytes(output)

def readvarint(source):
	"""
	Reads one varint from anything with a read_bytes(count) method, a
	ByteCursor or a TcpClient.
	"""
	value = 0
	for shift in range(0, 7 * MAXBYTES, 7):
		byte = source.read_bytes(1)[0]
		value |= (byte & 0x7F) << shift
		if not byte & 0x80:
			value &= 0xFFFFFFFF
			if value & 0x80000000:
				value -= 1 << 32
			return value
	raise QueryError(MALFORMED_HEADER, "varint longer than %d bytes" % MAXBYTES)

def packstring(value):
	data = value.encode("utf-8")
	return packvarint(len(data)) + data
