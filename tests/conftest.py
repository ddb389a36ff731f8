import pytest

from gamequery import NO_RESPONSE, TRUNCATED, QueryError

class FakeClient:

	"""
	Scripted stand-in for UdpClient. Each send() pops the next reply
	(bytes, an exception to raise, or a callable given the request);
	recv() pops the queued follow-up datagrams.
	"""

	def __init__(self, replies = (), datagrams = ()):
		self.replies	= list(replies)
		self.datagrams	= list(datagrams)
		self.sent		= []
		self.opened		= 0
		self.closed		= 0

	def __call__(self, host, port, **kwargs):
		self.address = (host, port)
		self.kwargs = kwargs
		return self

	def __enter__(self):
		self.opened += 1
		return self

	def __exit__(self, *exc):
		self.closed += 1

	def send(self, packet):
		self.sent.append(packet)
		if not self.replies:
			raise QueryError(NO_RESPONSE, "timed out")
		reply = self.replies.pop(0)
		if isinstance(reply, Exception):
			raise reply
		if callable(reply):
			return reply(packet)
		return reply

	def recv(self, timeout = None):
		if not self.datagrams:
			raise QueryError(NO_RESPONSE, "timed out")
		return self.datagrams.pop(0)

class FakeStream(FakeClient):

	"""
	Scripted stand-in for TcpClient: everything sent is recorded and reads
	come from one byte string.
	"""

	def __init__(self, stream = b""):
		FakeClient.__init__(self)
		self.stream = stream

	def send(self, data):
		self.sent.append(data)

	def read_bytes(self, count):
		if len(self.stream) < count:
			if not self.stream:
				raise QueryError(NO_RESPONSE, "connection closed")
			raise QueryError(TRUNCATED, "connection closed")
		(data, self.stream) = (self.stream[:count], self.stream[count:])
		return data

@pytest.fixture
def fake():
	return FakeClient

@pytest.fixture
def stream():
	return FakeStream