import logging, socket, struct

NO_RESPONSE				= "NoResponse"
TRUNCATED				= "Truncated"
MALFORMED_HEADER		= "MalformedHeader"
CHALLENGE_MISMATCH		= "ChallengeMismatch"
INCOMPLETE_REASSEMBLY	= "IncompleteReassembly"
CHECKSUM_MISMATCH		= "ChecksumMismatch"
MALFORMED_COMPRESSED	= "MalformedCompressedData"
MALFORMED_PLAYER_LINE	= "MalformedPlayerLine"
MALFORMED_RULE_DATA		= "MalformedRuleData"

class QueryError(Exception):

	"""
	A query failure of one of the kinds above. The decoders turn it into an
	offline ServerInfo, so it never leaves Decoder.query().
	"""

	def __init__(self, kind, message = ""):
		Exception.__init__(self, kind, message)
		self.kind = kind
		self.message = message

	def __str__(self):
		if self.message:
			return "%s: %s" % (self.kind, self.message)
		return self.kind

def text(raw):
	return raw.decode("utf-8", "replace")

def toint(value, default = 0):
	try:
		return int(value)
	except (TypeError, ValueError, OverflowError):
		return default

class ByteCursor:

	"""
	Strict reader over an immutable byte buffer. A read that runs past the
	end raises Truncated and leaves the offset where it was.
	"""

	def __init__(self, data, offset = 0):
		self.data = bytes(data)
		self.offset = 0
		self.seek(offset)

	def remaining(self):
		return len(self.data) - self.offset

	def seek(self, offset):
		if offset < 0 or offset > len(self.data):
			raise QueryError(TRUNCATED, "seek to %d in a %d byte buffer" % (offset, len(self.data)))
		self.offset = offset

	def rest(self):
		value = self.data[self.offset:]
		self.offset = len(self.data)
		return value

	def unpack(self, format, order = "<"):
		size = struct.calcsize(order + format)
		if self.remaining() < size:
			raise QueryError(TRUNCATED, "%d bytes wanted at offset %d, %d left" % (size, self.offset, self.remaining()))
		value = struct.unpack_from(order + format, self.data, self.offset)
		self.offset += size
		return value

	def read_u8(self): return self.unpack("B")[0]
	def read_i8(self): return self.unpack("b")[0]
	def read_u16(self, order = "<"): return self.unpack("H", order)[0]
	def read_i16(self, order = "<"): return self.unpack("h", order)[0]
	def read_u32(self, order = "<"): return self.unpack("I", order)[0]
	def read_i32(self, order = "<"): return self.unpack("i", order)[0]
	def read_u64(self, order = "<"): return self.unpack("Q", order)[0]
	def read_i64(self, order = "<"): return self.unpack("q", order)[0]
	def read_f32(self, order = "<"): return self.unpack("f", order)[0]
	def read_f64(self, order = "<"): return self.unpack("d", order)[0]

	def read_bytes(self, count):
		if count < 0 or self.remaining() < count:
			raise QueryError(TRUNCATED, "%d bytes wanted at offset %d, %d left" % (count, self.offset, self.remaining()))
		value = self.data[self.offset:self.offset + count]
		self.offset += count
		return value

	def read_cstring(self):
		end = self.data.find(b"\x00", self.offset)
		if end == -1:
			raise QueryError(TRUNCATED, "unterminated string at offset %d" % self.offset)
		value = self.data[self.offset:end]
		self.offset = end + 1
		return text(value)

	def read_pstring(self, width = 1, inclusive = False, order = "<"):
		start = self.offset
		length = self.unpack({1: "B", 2: "H", 4: "I"}[width], order)[0]
		if inclusive:
			length = max(length - width, 0)
		try:
			return text(self.read_bytes(length))
		except QueryError:
			self.offset = start
			raise

class DataReader:

	"""
	Lenient reader for sloppy replies: reading up to a delimiter that never
	comes hands back the rest of the buffer and empties it.
	"""

	def __init__(self, data):
		self.data = bytes(data)

	def read(self, format, byteorder = "<"):
		size = struct.calcsize(byteorder + format)
		if len(self.data) >= size:
			value = struct.unpack(byteorder + format, self.data[0:size])
			self.data = self.data[size:]
		else:
			value = ()
		return value

	def readto(self, byte, count = None):
		value = ()
		for x in range(1 if count is None else count):
			index = self.data.find(bytes((byte,)))
			if index == -1:
				index = len(self.data)
			value += (text(self.data[0:index]),)
			self.data = self.data[index+1:]
		if count is None:
			value = value[0]
		return value

	def cut(self, length):
		value = self.data[0:length]
		self.data = self.data[length:]
		return value

	def cutpascal(self):
		if not self.data:
			return ""
		length = self.data[0]
		value = self.data[1:1 + length]
		self.data = self.data[1 + length:]
		return text(value)
