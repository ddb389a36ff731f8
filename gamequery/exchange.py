from . import *
import bz2, zlib

log = logging.getLogger(__name__)

SINGLE	= b"\xFF\xFF\xFF\xFF"
SPLIT	= b"\xFE\xFF\xFF\xFF"

def challenge_exchange(send, request, detect, append):
	"""
	Sends request and returns the reply. If detect() finds a challenge
	token in the reply, the request is rebuilt with append(request, token)
	and sent exactly once more; whatever comes back is the answer.
	"""
	reply = send(request)
	token = detect(reply)
	if token is None:
		return reply
	log.debug("challenge %s, resending", token.hex())
	return send(append(request, token))

class Reassembler:

	"""
	Source engine split packets.

	fetch() returns the next datagram from the same server and raises
	QueryError on timeout. The Source header is -2, request id, total,
	number and (unless short_split) the split size; bzip2 compressed
	requests carry the decompressed size and CRC32 in packet 0. With
	goldsource=True the total and number share one byte.
	"""

	def __init__(self, fetch, goldsource = False, short_split = False):
		self.fetch = fetch
		self.goldsource = goldsource
		self.short_split = short_split

	def split(self, datagram):
		packet = ByteCursor(datagram)
		if packet.read_bytes(4) != SPLIT:
			raise QueryError(MALFORMED_HEADER, "not a split packet")
		requestid = packet.read_u32()
		checksum = None
		if self.goldsource:
			byte = packet.read_u8()
			(total, number) = (byte & 0x0F, byte >> 4)
		else:
			(total, number) = (packet.read_u8(), packet.read_u8())
			if not self.short_split:
				packet.read_u16()
			if requestid & 0x80000000 and number == 0:
				checksum = packet.unpack("II")
		if not total or number >= total:
			raise QueryError(MALFORMED_HEADER, "split packet %d of %d" % (number, total))
		return (requestid, total, number, checksum, packet.rest())

	def reassemble(self, first):
		(requestid, total, number, checksum, payload) = self.split(first)
		parts = {number: payload}
		for x in range(2 * total + 8):
			if len(parts) == total:
				break
			try:
				datagram = self.fetch()
			except QueryError as error:
				raise QueryError(INCOMPLETE_REASSEMBLY, "%d of %d parts of request %08x (%s)" % (len(parts), total, requestid, error))
			(packetid, count, number, packetsum, payload) = self.split(datagram)
			if packetid != requestid or count != total:
				log.debug("dropping part %d of foreign request %08x", number, packetid)
				continue
			if packetsum is not None:
				checksum = packetsum
			parts[number] = payload
		if len(parts) != total:
			raise QueryError(INCOMPLETE_REASSEMBLY, "%d of %d parts of request %08x" % (len(parts), total, requestid))

		data = b"".join(parts[index] for index in range(total))
		if requestid & 0x80000000 and not self.goldsource:
			if checksum is None:
				raise QueryError(MALFORMED_HEADER, "compressed reply without a checksum")
			try:
				data = bz2.decompress(data)
			except (OSError, ValueError) as error:
				raise QueryError(MALFORMED_COMPRESSED, str(error))
			(size, crc) = checksum
			if len(data) != size or zlib.crc32(data) & 0xFFFFFFFF != crc:
				raise QueryError(CHECKSUM_MISMATCH, "request %08x" % requestid)
		log.debug("reassembled %d parts of request %08x", total, requestid)
		return data[4:]
