from . import *
from concurrent.futures import ThreadPoolExecutor, as_completed

log = logging.getLogger(__name__)

class UdpClient:

	"""
	A connected UDP socket to one server. send() returns the first reply,
	recv() waits at most `gap` seconds for each further fragment.
	"""

	BUFFER = 65535

	def __init__(self, host, port, timeout = 2, gap = 0.5):
		self.host		= host
		self.port		= int(port)
		self.timeout	= timeout
		self.gap		= gap
		self.socket		= None

	def open(self):
		try:
			self.socket = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
			self.socket.connect((socket.gethostbyname(self.host), self.port))
		except OSError as error:
			self.close()
			raise QueryError(NO_RESPONSE, "cannot reach %s:%d (%s)" % (self.host, self.port, error))
		return self

	def close(self):
		if self.socket is not None:
			self.socket.close()
			self.socket = None

	def __enter__(self): return self.open()
	def __exit__(self, *exc): self.close()

	def send(self, packet):
		log.debug("%s:%d <- %s", self.host, self.port, packet.hex())
		try:
			self.socket.send(packet)
		except OSError as error:
			raise QueryError(NO_RESPONSE, "send to %s:%d failed (%s)" % (self.host, self.port, error))
		return self.recv(self.timeout)

	def recv(self, timeout = None):
		self.socket.settimeout(self.gap if timeout is None else timeout)
		try:
			packet = self.socket.recv(self.BUFFER)
		except socket.timeout:
			raise QueryError(NO_RESPONSE, "%s:%d timed out" % (self.host, self.port))
		except OSError as error:
			raise QueryError(NO_RESPONSE, "%s:%d (%s)" % (self.host, self.port, error))
		log.debug("%s:%d -> %s", self.host, self.port, packet.hex())
		if not packet:
			raise QueryError(NO_RESPONSE, "empty reply from %s:%d" % (self.host, self.port))
		return packet

class TcpClient:

	"""
	A stream connection for the protocols that speak TCP. read_bytes()
	returns exactly the number of bytes asked for.
	"""

	def __init__(self, host, port, timeout = 5, **kwargs):
		self.host		= host
		self.port		= int(port)
		self.timeout	= timeout
		self.socket		= None

	def open(self):
		try:
			self.socket = socket.create_connection((self.host, self.port), self.timeout)
		except OSError as error:
			raise QueryError(NO_RESPONSE, "cannot connect to %s:%d (%s)" % (self.host, self.port, error))
		return self

	def close(self):
		if self.socket is not None:
			self.socket.close()
			self.socket = None

	def __enter__(self): return self.open()
	def __exit__(self, *exc): self.close()

	def send(self, data):
		log.debug("%s:%d <- %s", self.host, self.port, data.hex())
		try:
			self.socket.sendall(data)
		except OSError as error:
			raise QueryError(NO_RESPONSE, "send to %s:%d failed (%s)" % (self.host, self.port, error))

	def read_bytes(self, count):
		data = b""
		while len(data) < count:
			try:
				chunk = self.socket.recv(count - len(data))
			except socket.timeout:
				raise QueryError(NO_RESPONSE, "%s:%d timed out" % (self.host, self.port))
			except OSError as error:
				raise QueryError(NO_RESPONSE, "%s:%d (%s)" % (self.host, self.port, error))
			if not chunk:
				if not data:
					raise QueryError(NO_RESPONSE, "%s:%d closed the connection" % (self.host, self.port))
				raise QueryError(TRUNCATED, "%d of %d bytes before the connection closed" % (len(data), count))
			data += chunk
		return data

class Batch:

	"""
	Queries many servers at once, each on its own socket in a worker
	thread, and hands every ServerInfo to callback as it completes.
	"""

	def __init__(self, maxcurrent = 8):
		self.servers	= []
		self.maxcurrent	= maxcurrent

	def addserver(self, server):
		self.servers.append(server)

	def queryall(self, callback, players = True, rules = True):
		results = []
		with ThreadPoolExecutor(max_workers = self.maxcurrent) as pool:
			futures = [pool.submit(server.query, players, rules) for server in self.servers]
			for future in as_completed(futures):
				information = future.result()
				results.append(information)
				if callback is not None:
					callback(information)
		return results
