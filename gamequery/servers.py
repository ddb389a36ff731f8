from . import *
from . import huffman, ventrilo as cipher
from .exchange import SINGLE, SPLIT, Reassembler, challenge_exchange
from .info import blank, finish, offline
from .query import UdpClient, TcpClient
from .varint import packstring, packvarint, readvarint
import json, re, time

log = logging.getLogger(__name__)

NUMBER = re.compile(r"^-?\d+$")

def number(value):
	if NUMBER.match(value):
		return int(value)
	return value

def gamespy(details, information):
	"""
	Maps GameSpy style key/value details onto the common fields. Anything
	without a field of its own lands in rules.
	"""
	for (key, value) in details.items():
		if key == "hostname": information["servertitle"] = value
		elif key == "mapname": information["mapname"] = value
		elif key == "gametype": information["gametype"] = value
		elif key in ("numplayers", "maxplayers"): information[key] = toint(value)
		elif key == "gamever": information["gameversion"] = value
		else: information["rules"][key] = value
	if "password" in information["rules"]:
		information["password"] = 1 if toint(information["rules"]["password"]) else 0

def infostring(data):
	"""
	Splits a Quake style \\key\\value\\ string.
	"""
	information = {}
	variables = DataReader(data)
	variables.readto(0x5C)
	while variables.data:
		(name, value) = variables.readto(0x5C, 2)
		if name: information[name] = value
	return information

def rows(table, renames = None):
	records = []
	for row in table:
		record = {}
		for (key, value) in row.items():
			key = (renames or {}).get(key, key)
			record[key] = value if key == "name" else number(value)
		records.append(record)
	return records

class none(object):

	"""
	Base decoder. Subclasses fill `information`, a dict shaped like
	ServerInfo, from what the server says over `connection`; query()
	turns the outcome into a ServerInfo either way.
	"""

	PROTOCOL	= "none"
	PORT		= 0
	CLIENT		= UdpClient

	def __init__(self, host, port = None, client = None, timeout = None, gamename = None, **options):
		self.host		= host
		self.port		= int(port or self.PORT)
		self.client		= client or self.CLIENT
		self.timeout	= timeout
		self.gamename	= gamename or ""
		self.options	= options

	def connect(self):
		if self.timeout is None:
			return self.client(self.host, self.port)
		return self.client(self.host, self.port, timeout = self.timeout)

	def query(self, players = True, rules = True):
		information = blank(self.host, self.port, self.PROTOCOL, self.gamename)
		try:
			with self.connect() as connection:
				self.request(connection, information, players, rules)
			return finish(information)
		except QueryError as error:
			log.info("%s query of %s:%d failed: %s", self.PROTOCOL, self.host, self.port, error)
			return offline(self.host, self.port, self.PROTOCOL, error, self.gamename)
		except (ValueError, LookupError, TypeError, AttributeError, ArithmeticError, RecursionError, struct.error) as error:
			log.debug("%s reply from %s:%d is unreadable", self.PROTOCOL, self.host, self.port, exc_info = True)
			return offline(self.host, self.port, self.PROTOCOL, QueryError(MALFORMED_HEADER, str(error)), self.gamename)

	def request(self, connection, information, players, rules):
		pass

	def optional(self, section, function, *args):
		try:
			return function(*args)
		except QueryError as error:
			log.debug("%s %s of %s:%d skipped: %s", self.PROTOCOL, section, self.host, self.port, error)
			return None

class source(none):

	"""
	Source engine A2S queries. Any info reply other than 'I' is read
	as the GoldSource layout ('m' on real servers), which also switches
	split packet parsing to the GoldSource header.
	"""

	PROTOCOL	= "source"
	PORT		= 27015

	A2S_INFO						= SINGLE + b"\x54Source Engine Query\x00"
	A2S_PLAYER						= SINGLE + b"\x55"
	A2S_RULES						= SINGLE + b"\x56"
	A2S_SERVERQUERY_GETCHALLENGE	= SINGLE + b"\x57"

	S2A_INFO		= 0x49
	S2A_PLAYER		= 0x44
	S2A_RULES		= 0x45
	S2C_CHALLENGE	= 0x41

	NOCHALLENGE		= b"\xFF\xFF\xFF\xFF"

	OS = {"l": "Linux", "w": "Windows", "m": "Mac", "o": "Mac"}

	def request(self, connection, information, players, rules):
		goldsource = self.options.get("goldsource", False)
		reply = challenge_exchange(lambda packet: self.send(connection, packet, goldsource), self.A2S_INFO, self.challenge, lambda request, token: request + token)
		if reply[0] == self.S2A_INFO:
			self.parseinfo(ByteCursor(reply, 1), information)
		elif reply[0] == self.S2C_CHALLENGE:
			raise QueryError(CHALLENGE_MISMATCH, "server challenged the answered challenge")
		else:
			self.parseoldinfo(ByteCursor(reply, 1), information)
			goldsource = True

		if not (players or rules):
			return
		send = lambda packet: self.send(connection, packet, goldsource)
		token = self.getchallenge(send)
		if rules:
			self.optional("rules", self.rules, send, token, information)
		if players:
			self.optional("players", self.players, send, token, information)

	def send(self, connection, packet, goldsource = False):
		reply = connection.send(packet)
		if reply[0:4] == SPLIT:
			reply = Reassembler(connection.recv, goldsource, self.options.get("short_split", False)).reassemble(reply)
		elif reply[0:4] == SINGLE:
			reply = reply[4:]
		else:
			raise QueryError(MALFORMED_HEADER, "reply starts with %s" % reply[0:4].hex())
		if not reply:
			raise QueryError(TRUNCATED, "reply without a type byte")
		return reply

	def challenge(self, reply):
		if reply[0] != self.S2C_CHALLENGE:
			return None
		if len(reply) < 5:
			raise QueryError(TRUNCATED, "challenge reply of %d bytes" % len(reply))
		return reply[-4:]

	def getchallenge(self, send):
		try:
			reply = send(self.A2S_SERVERQUERY_GETCHALLENGE)
		except QueryError as error:
			log.debug("%s:%d ignored the challenge request: %s", self.host, self.port, error)
			return self.NOCHALLENGE
		return self.optional("challenge", self.challenge, reply) or self.NOCHALLENGE

	def parseinfo(self, cursor, information):
		rules = information["rules"]
		rules["protocol"] = cursor.read_u8()
		information["servertitle"] = cursor.read_cstring()
		information["mapname"] = cursor.read_cstring()
		rules["gamedir"] = cursor.read_cstring()
		rules["gamedescription"] = cursor.read_cstring()
		rules["appid"] = cursor.read_u16()
		(numplayers, maxplayers, bots, dedicated, os, password, secure) = cursor.unpack("BBBBBBB")
		information["numplayers"] = numplayers
		information["maxplayers"] = maxplayers
		information["password"] = 1 if password else 0
		information["gameversion"] = cursor.read_cstring()
		information["gamename"] = information["gamename"] or rules["gamedir"]
		rules["botplayers"] = bots
		rules["dedicated"] = chr(dedicated).lower() == "d"
		rules["os"] = self.OS.get(chr(os).lower(), chr(os))
		rules["secure"] = bool(secure)
		if not cursor.remaining():
			return
		edf = cursor.read_u8()
		if edf & 0x80:
			rules["port"] = cursor.read_i16()
		if edf & 0x10:
			rules["steamid"] = cursor.read_i64()
		if edf & 0x40:
			rules["tvport"] = cursor.read_i16()
			rules["tvname"] = cursor.read_cstring()
		if edf & 0x20:
			rules["keywords"] = cursor.read_cstring()
		if edf & 0x01:
			rules["gameid"] = cursor.read_i64()

	def parseoldinfo(self, cursor, information):
		rules = information["rules"]
		rules["address"] = cursor.read_cstring()
		information["servertitle"] = cursor.read_cstring()
		information["mapname"] = cursor.read_cstring()
		rules["gamedir"] = cursor.read_cstring()
		rules["gamedescription"] = cursor.read_cstring()
		(numplayers, maxplayers, protocol, dedicated, os, password, mod) = cursor.unpack("BBBBBBB")
		information["numplayers"] = numplayers
		information["maxplayers"] = maxplayers
		information["password"] = 1 if password else 0
		information["gameversion"] = "%d (1.6)" % protocol if protocol == 47 else str(protocol)
		information["gamename"] = information["gamename"] or rules["gamedir"]
		rules["protocol"] = protocol
		rules["dedicated"] = chr(dedicated).lower() == "d"
		rules["os"] = self.OS.get(chr(os).lower(), chr(os))
		if mod:
			rules["mod_url"] = cursor.read_cstring()
			rules["mod_download"] = cursor.read_cstring()
			cursor.read_cstring()
			(rules["mod_version"], rules["mod_size"]) = cursor.unpack("ii")
			(serveronly, clientdll) = cursor.unpack("BB")
			rules["mod_serveronly"] = bool(serveronly)
			rules["mod_clientdll"] = bool(clientdll)
		if cursor.remaining():
			rules["secure"] = bool(cursor.read_u8())
		if cursor.remaining():
			rules["botplayers"] = cursor.read_u8()

	def rules(self, send, token, information):
		reply = challenge_exchange(send, self.A2S_RULES + token, self.challenge, lambda request, token: request[0:5] + token)
		if reply[0] != self.S2A_RULES:
			raise QueryError(MALFORMED_RULE_DATA, "rules reply type 0x%02X" % reply[0])
		cursor = ByteCursor(reply, 1)
		count = cursor.read_u16()
		rules = {}
		try:
			while len(rules) < count and cursor.remaining():
				name = cursor.read_cstring()
				rules[name] = cursor.read_cstring()
		except QueryError as error:
			raise QueryError(MALFORMED_RULE_DATA, "rule %d of %d: %s" % (len(rules) + 1, count, error.message))
		information["rules"].update(rules)
		if "sv_password" in rules:
			information["password"] = 1 if toint(rules["sv_password"]) else 0
		if toint(rules.get("coop")):
			information["gametype"] = "coop"
		elif toint(rules.get("deathmatch")):
			information["gametype"] = "deathmatch"

	def players(self, send, token, information):
		reply = challenge_exchange(send, self.A2S_PLAYER + token, self.challenge, lambda request, token: request[0:5] + token)
		if reply[0] != self.S2A_PLAYER:
			raise QueryError(MALFORMED_PLAYER_LINE, "player reply type 0x%02X" % reply[0])
		cursor = ByteCursor(reply, 1)
		players = []
		for x in range(cursor.read_u8()):
			if not cursor.remaining():
				break
			cursor.read_u8()
			players.append({
				"name":		cursor.read_cstring(),
				"score":	cursor.read_i32(),
				"time":		cursor.read_f32(),
			})
		information["players"] = players

class gs(none):

	"""
	GameSpy
	"""

	PROTOCOL	= "gamespy"
	PORT		= 23000

	REQUEST_STATUS	= b"\\status\\"
	MAXPACKETS		= 16

	PLAYER_FIELDS	= {"player": "name", "frags": "score"}

	def request(self, connection, information, players, rules):
		details = {}
		playertable = {}
		teamtable = {}
		for pairs in self.collect(connection, connection.send(self.REQUEST_STATUS)):
			for (key, value) in pairs:
				(field, separator, index) = key.rpartition("_")
				if key in ("queryid", "final", "echoresponse"):
					continue
				elif separator and index.isdigit():
					table = teamtable if field == "teamname" else playertable
					table.setdefault(int(index), {})[field] = value
				else:
					details[key] = value
		gamespy(details, information)
		if players:
			information["players"] = rows([playertable[index] for index in sorted(playertable)], self.PLAYER_FIELDS)
			information["teams"] = rows([teamtable[index] for index in sorted(teamtable)], {"teamname": "name"})
			if "numplayers" not in details:
				information["numplayers"] = len(information["players"])

	def collect(self, connection, packet):
		packets = {}
		final = None
		while len(packets) < self.MAXPACKETS:
			fields = text(packet).split("\\")[1:]
			pairs = list(zip(fields[0::2], fields[1::2]))
			index = len(packets) + 1
			for (key, value) in pairs:
				if key == "queryid" and "." in value:
					index = toint(value.split(".")[1], index)
			if "final" in [key for (key, value) in pairs]:
				final = index
			packets[index] = pairs
			if final is not None and len(packets) >= final:
				break
			try:
				packet = connection.recv()
			except QueryError as error:
				if final is None:
					log.debug("%s:%d sent no final packet, using %d", self.host, self.port, len(packets))
					break
				raise QueryError(INCOMPLETE_REASSEMBLY, "%d of %d packets (%s)" % (len(packets), final, error))
		return [packets[index] for index in sorted(packets)]

class gs2(none):

	"""
	GameSpy 2
	"""

	PROTOCOL	= "gamespy2"
	PORT		= 23000

	REQUEST_INFO		= b"\xFE\xFD\x00\x00\x00\x00\x01\xFF\x00\x00"
	REQUEST_PLAYER		= b"\xFE\xFD\x00\x00\x00\x00\x02\x00\xFF\x00"
	REQUEST_TEAM		= b"\xFE\xFD\x00\x00\x00\x00\x03\x00\x00\xFF"

	def request(self, connection, information, players, rules):
		details = {}
		variables = DataReader(self.send(connection, self.REQUEST_INFO))
		while variables.data:
			(name, value) = variables.readto(0x00, 2)
			if name: details[name] = value
		gamespy(details, information)
		if players:
			information["players"] = rows(self.optional("players", self.table, connection, self.REQUEST_PLAYER) or [], {"player": "name"})
			information["teams"] = rows(self.optional("teams", self.table, connection, self.REQUEST_TEAM) or [], {"team": "name"})

	def send(self, connection, packet):
		reply = connection.send(packet)
		if reply[0:5] != b"\x00" + packet[3:7]:
			raise QueryError(MALFORMED_HEADER, "reply for session %s" % reply[1:5].hex())
		return reply[5:]

	def table(self, connection, packet):
		records = []
		table = DataReader(self.send(connection, packet))
		if table.read("B"):
			table.read("B")
			labels = []
			while table.data:
				label = table.readto(0x00).split("_")
				if not label[0]: break
				labels.append(label[0])
			while table.data:
				record = {}
				for label in labels:
					value = table.readto(0x00)
					if value: record[label] = value
				if record: records.append(record)
		return records

class gs3(none):

	"""
	GameSpy 3
	"""

	PROTOCOL	= "gamespy3"
	PORT		= 29900

	SESSION				= b"\x10\x20\x30\x40"
	REQUEST_CHALLENGE	= b"\xFE\xFD\x09" + SESSION
	REQUEST_ALL			= b"\xFE\xFD\x00" + SESSION
	REQUEST_FLAGS		= b"\xFF\xFF\xFF\x01"
	SPLITNUM			= b"splitnum\x00"
	MAXPACKETS			= 16

	def request(self, connection, information, players, rules):
		try:
			token = self.challenge(connection.send(self.REQUEST_CHALLENGE))
		except QueryError as error:
			if error.kind != NO_RESPONSE:
				raise
			log.debug("%s:%d wants no challenge", self.host, self.port)
			token = b""
		details = {}
		playertable = []
		teamtable = []
		for body in self.collect(connection, connection.send(self.REQUEST_ALL + token + self.REQUEST_FLAGS)):
			self.tables(DataReader(body), details, playertable, teamtable)
		gamespy(details, information)
		if players:
			information["players"] = rows([player for player in playertable if player], {"player": "name"})
			information["teams"] = rows([team for team in teamtable if team], {"team": "name"})
			if "numplayers" not in details:
				information["numplayers"] = len(information["players"])

	def challenge(self, reply):
		if reply[0:5] != b"\x09" + self.SESSION:
			raise QueryError(CHALLENGE_MISMATCH, "challenge reply for session %s" % reply[1:5].hex())
		numeral = re.search(rb"-?\d+", reply[5:])
		if numeral is None:
			return b""
		return struct.pack(">I", int(numeral.group()) & 0xFFFFFFFF)

	def collect(self, connection, packet):
		packets = {}
		final = None
		while True:
			if packet[0:5] != b"\x00" + self.SESSION:
				raise QueryError(MALFORMED_HEADER, "reply for session %s" % packet[1:5].hex())
			body = packet[5:]
			if not body.startswith(self.SPLITNUM):
				return [b"\x00" + body]
			if len(body) < len(self.SPLITNUM) + 1:
				raise QueryError(TRUNCATED, "split reply without a packet number")
			index = body[len(self.SPLITNUM)]
			if index & 0x80:
				final = index & 0x7F
			packets[index & 0x7F] = body[len(self.SPLITNUM) + 1:]
			if final is not None and len(packets) > final:
				break
			if len(packets) >= self.MAXPACKETS:
				raise QueryError(INCOMPLETE_REASSEMBLY, "no final packet after %d" % len(packets))
			try:
				packet = connection.recv()
			except QueryError as error:
				raise QueryError(INCOMPLETE_REASSEMBLY, "%d packets, final %s (%s)" % (len(packets), final, error))
		missing = [index for index in range(final + 1) if index not in packets]
		if missing:
			raise QueryError(INCOMPLETE_REASSEMBLY, "missing packets %s" % missing)
		return [packets[index] for index in range(final + 1)]

	def tables(self, packetbody, details, players, teams):
		table = packetbody.read("B")
		table = table[0] if table else None
		while packetbody.data and table is not None:
			if table == 0:
				key = packetbody.readto(0x00)
				if key:
					details[key] = packetbody.readto(0x00)
					continue
				packetbody.data = packetbody.data.lstrip(b"\x00")
			elif table in (1, 2):
				column = packetbody.readto(0x00)
				if column:
					start = packetbody.read("B")
					row = start[0] if start else 0
					records = players if table == 1 else teams
					while packetbody.data:
						value = packetbody.readto(0x00)
						if not value: break
						records += [{} for x in range(1 + row - len(records))]
						records[row][column.split("_")[0]] = value
						row += 1
					continue
			else:
				log.debug("%s:%d unknown table %d", self.host, self.port, table)
				break
			table = packetbody.read("B")
			table = table[0] if table else None

class q3(none):

	"""
	Quake 3 and the games built on its engine
	"""

	PROTOCOL	= "quake3"
	PORT		= 27960

	REQUEST_STATUS	= SINGLE + b"\x02getstatus\x0A\x00"

	PLAYER_LINES = (
		(re.compile(r'^(-?\d+)\s+(-?\d+)\s+"(.*)"\s+(-?\d+)$'), ("score", "ping", "name", "team")),
		(re.compile(r'^(-?\d+)\s+(-?\d+)\s+"(.*)"$'), ("score", "ping", "name")),
		(re.compile(r'^(-?\d+)\s+"(.*)"$'), ("ping", "name")),
	)

	def request(self, connection, information, players, rules):
		packetsegments = connection.send(self.REQUEST_STATUS).split(b"\n")
		if packetsegments[0][0:4] != SINGLE:
			raise QueryError(MALFORMED_HEADER, "reply starts with %s" % packetsegments[0][0:4].hex())
		if len(packetsegments) < 2:
			raise QueryError(TRUNCATED, "status reply without an info string")
		self.parseinfo(infostring(packetsegments[1]), information)
		lines = [text(line).strip() for line in packetsegments[2:] if line.strip()]
		if players:
			information["players"] = [self.parseplayer(line) for line in lines]
		information["numplayers"] = len(lines)

	def parseinfo(self, variables, information):
		rules = information["rules"]
		maxclients = None
		private = 0
		for (name, value) in variables.items():
			key = name.lower()
			if key in ("sv_hostname", "hostname"):
				information["servertitle"] = value
			elif key == "mapname":
				information["mapname"] = value
			elif key == "g_gametypestring":
				information["gametype"] = value
			elif key == "gamename":
				information["gametype"] = value
				if not self.gamename:
					information["gamename"] = "q3a_" + re.sub(r"[ :]", "_", value.lower())
			elif key in ("version", "shortversion"):
				information["gameversion"] = value
			elif key in ("g_needpass", "pswrd"):
				information["password"] = 1 if toint(value) else 0
			elif key == "sv_maplist":
				information["maplist"] = value.split()
				rules[name] = list(information["maplist"])
			elif key == "sv_privateclients":
				private = toint(value)
				rules[name] = value
			else:
				if key == "sv_maxclients":
					maxclients = toint(value)
				rules[name] = value
		mohaa = self.options.get("mohaa") or "Medal of Honor" in information["gameversion"]
		if mohaa and not information["gamename"]:
			information["gamename"] = "mohaa"
		if mohaa:
			information["mapname"] = information["mapname"].rsplit("/", 1)[-1]
		if maxclients is not None:
			information["maxplayers"] = max(maxclients - private, 0)

	def parseplayer(self, line):
		for (pattern, fields) in self.PLAYER_LINES:
			match = pattern.match(line)
			if match:
				player = dict(zip(fields, match.groups()))
				for field in fields:
					if field != "name": player[field] = int(player[field])
				return player
		raise QueryError(MALFORMED_PLAYER_LINE, repr(line))

class qw(none):

	"""
	QuakeWorld
	"""

	PROTOCOL	= "quakeworld"
	PORT		= 27500

	REQUEST_STATUS	= SINGLE + b"status\x0A\x00"
	PLAYER_FIELDS	= ("id", "score", "time", "ping", "name", "skin", "topcolor", "bottomcolor")
	TOKEN			= re.compile(r'"([^"]*)"|(\S+)')

	def request(self, connection, information, players, rules):
		reply = connection.send(self.REQUEST_STATUS)
		if reply[0:5] != SINGLE + b"n":
			raise QueryError(MALFORMED_HEADER, "reply starts with %s" % reply[0:5].hex())
		packetsegments = reply[5:].split(b"\n")
		rules = information["rules"]
		for (name, value) in infostring(packetsegments[0]).items():
			if name == "hostname": information["servertitle"] = value
			elif name == "map": information["mapname"] = value
			elif name == "maxclients": information["maxplayers"] = toint(value)
			elif name == "*version": information["gameversion"] = value
			elif name == "*gamedir": information["gametype"] = value
			elif name == "needpass": information["password"] = 1 if toint(value) & 1 else 0
			else: rules[name] = value
		lines = [text(line).strip() for line in packetsegments[1:] if line.strip()]
		if players:
			information["players"] = [self.parseplayer(line) for line in lines]
		information["numplayers"] = len(lines)

	def parseplayer(self, line):
		tokens = [quoted if quoted or not bare else bare for (quoted, bare) in self.TOKEN.findall(line)]
		player = {"name": ""}
		for (field, value) in zip(self.PLAYER_FIELDS, tokens):
			player[field] = value if field in ("name", "skin") else number(value)
		return player

class ase(none):

	"""
	All Seeing Eye
	"""

	PROTOCOL	= "ase"
	PORT		= 22126

	REQUEST_INFO	= b"\x73"
	HEADER			= b"EYE1"

	PLAYER_FLAGS = (
		(1, "name"),
		(2, "team"),
		(4, "skin"),
		(8, "score"),
		(16, "ping"),
		(32, "time"),
	)

	def request(self, connection, information, players, rules):
		reply = connection.send(self.REQUEST_INFO)
		if reply[0:4] != self.HEADER:
			raise QueryError(MALFORMED_HEADER, "reply starts with %s" % reply[0:4].hex())
		variables = ByteCursor(reply, 4)
		(
			gamename,
			port,
			information["servertitle"],
			information["gametype"],
			information["mapname"],
			information["gameversion"],
			password,
			numplayers,
			maxplayers
		) = [variables.read_pstring(inclusive = True) for x in range(9)]
		information["gamename"] = information["gamename"] or gamename
		information["numplayers"] = toint(numplayers)
		information["maxplayers"] = toint(maxplayers)
		information["password"] = 1 if toint(password) else 0
		information["rules"]["port"] = toint(port)
		while variables.remaining():
			name = variables.read_pstring(inclusive = True)
			if not name: break
			information["rules"][name] = variables.read_pstring(inclusive = True)
		if players:
			information["players"] = self.optional("players", self.parseplayers, variables) or []

	def parseplayers(self, variables):
		players = []
		while variables.remaining():
			flags = variables.read_u8()
			player = {}
			for (flag, field) in self.PLAYER_FLAGS:
				if flags & flag:
					value = variables.read_pstring(inclusive = True)
					player[field] = value if field in ("name", "team", "skin") else number(value)
			players.append(player)
		return players

class torque(none):

	"""
	Torque engine games, queried with a ping and an info request
	"""

	PROTOCOL	= "torque"
	PORT		= 28000

	KEY				= b"\x00\x00\x00\x00"
	REQUEST_PING	= b"\x02\x00" + KEY
	REQUEST_INFO	= b"\x04\x00" + KEY
	NAMESIZE		= 24

	def request(self, connection, information, players, rules):
		rules = information["rules"]
		ping = ByteCursor(connection.send(self.REQUEST_PING), 6)
		information["gameversion"] = ping.read_cstring()
		rules["protocol_version"] = ping.read_u32(">")
		rules["min_protocol_version"] = ping.read_u32(">")
		rules["build_version"] = ping.read_u32(">")
		information["servertitle"] = text(ping.read_bytes(min(self.NAMESIZE, ping.remaining())).split(b"\x00")[0])

		reply = ByteCursor(connection.send(self.REQUEST_INFO), 6)
		information["gametype"] = reply.read_cstring()
		rules["mission_type"] = reply.read_cstring()
		information["mapname"] = reply.read_cstring()
		(rules["status"], information["numplayers"], information["maxplayers"], rules["bots"]) = reply.unpack("BBBB")
		rules["cpu_speed"] = reply.read_u16(">")

class tribes2(torque):

	"""
	Tribes 2, one request answered with pascal strings and delimited text
	"""

	PROTOCOL	= "tribes2"

	REQUEST_INFO	= b"\x12\x02\x21\x21\x21\x21"

	def request(self, connection, information, players, rules):
		reply = DataReader(connection.send(self.REQUEST_INFO)[6:])
		if not reply.data:
			raise QueryError(TRUNCATED, "empty tribes 2 reply")
		gamename = reply.cutpascal()
		information["gamename"] = information["gamename"] or gamename
		information["gametype"] = reply.cutpascal()
		information["mapname"] = reply.cutpascal()
		fixed = reply.read("BBBBH")
		if not fixed:
			raise QueryError(TRUNCATED, "tribes 2 reply ends before the player counts")
		(flags, information["numplayers"], information["maxplayers"], bots, cpu) = fixed
		rules = information["rules"]
		rules["dedicated"] = bool(flags & 1)
		information["password"] = 1 if flags & 2 else 0
		rules["os"] = "L" if flags & 4 else "W"
		rules["tournament"] = bool(flags & 8)
		rules["no_alias"] = bool(flags & 16)
		rules["bots"] = bots
		rules["cpu"] = cpu
		rules["motd"] = reply.cutpascal()
		reply.cut(2)

		reply.readto(0x0A)
		count = toint(reply.readto(0x0A))
		if not players:
			return
		for x in range(count):
			if not reply.data:
				break
			reply.cut(2)
			if reply.data and reply.data[0] < 32:
				reply.cut(1)
			name = reply.readto(0x11)
			reply.readto(0x09)
			team = reply.readto(0x09)
			information["players"].append({"name": name, "team": team, "score": toint(reply.readto(0x0A))})

class launcher(none):

	"""
	Skulltag and Zandronum launcher protocol. Both directions are Huffman
	coded.
	"""

	PROTOCOL	= "launcher"
	PORT		= 10666

	LAUNCHER_CHALLENGE	= 199

	SQF_NAME			= 0x00000001
	SQF_MAPNAME			= 0x00000008
	SQF_MAXPLAYERS		= 0x00000020
	SQF_NUMPLAYERS		= 0x00080000
	SQF_PLAYERDATA		= 0x00100000

	SERVER_LAUNCHER_CHALLENGE	= 5660023
	SERVER_LAUNCHER_IGNORING	= 5660024
	SERVER_LAUNCHER_BANNED		= 5660025
	SERVER_LAUNCHER_SEGMENTED	= 5660031

	def request(self, connection, information, players, rules):
		flags = self.SQF_NAME | self.SQF_MAPNAME | self.SQF_MAXPLAYERS | self.SQF_NUMPLAYERS
		if players:
			flags |= self.SQF_PLAYERDATA
		packet = huffman.compress(struct.pack("<iIii", self.LAUNCHER_CHALLENGE, flags, int(time.time()), 0))
		reply = ByteCursor(huffman.decompress(connection.send(packet)))

		code = reply.read_i32()
		if code == self.SERVER_LAUNCHER_IGNORING:
			raise QueryError(NO_RESPONSE, "server is ignoring queries from this address for now")
		if code == self.SERVER_LAUNCHER_BANNED:
			raise QueryError(NO_RESPONSE, "this address is banned by the server")
		if code == self.SERVER_LAUNCHER_SEGMENTED:
			raise QueryError(MALFORMED_HEADER, "segmented replies are not supported")
		if code != self.SERVER_LAUNCHER_CHALLENGE:
			raise QueryError(MALFORMED_HEADER, "response code %d" % code)

		reply.read_i32()
		information["gameversion"] = reply.read_cstring()
		returned = reply.read_u32()
		if returned & ~flags:
			raise QueryError(MALFORMED_HEADER, "unrequested fields 0x%08X" % (returned & ~flags))
		if returned & self.SQF_NAME:
			information["servertitle"] = reply.read_cstring()
		if returned & self.SQF_MAPNAME:
			information["mapname"] = reply.read_cstring()
		if returned & self.SQF_MAXPLAYERS:
			information["maxplayers"] = reply.read_u8()
		if returned & self.SQF_NUMPLAYERS:
			information["numplayers"] = reply.read_u8()
		if returned & self.SQF_PLAYERDATA:
			information["players"] = self.optional("players", self.parseplayers, reply, information["numplayers"]) or []

	def parseplayers(self, reply, count):
		players = []
		for x in range(count):
			player = {"name": reply.read_cstring()}
			player["score"] = reply.read_i16()
			player["ping"] = reply.read_u16()
			(spectator, bot, player["team"], player["time"]) = reply.unpack("BBBB")
			player["spectator"] = bool(spectator)
			player["bot"] = bool(bot)
			players.append(player)
		return players

class ventrilo(none):

	"""
	Ventrilo voice server status, an encrypted key: value listing split
	over several datagrams
	"""

	PROTOCOL	= "ventrilo"
	PORT		= 3784

	REQUEST_STATUS	= b"V\xC8\xF4\xF9`\xA2\x1E\xA5M\xFB\x03\xCCQN\xA1\x10\x95\xAF\xB2g\x17g\x812\xFBW\xFD\x8E\xD2\"r\x034z\xBB\x98"
	MAXPACKETS		= 8
	DATAGRAM		= 8192
	ESCAPE			= re.compile(rb"%([0-9A-Fa-f]{2})")
	LINE			= re.compile(r"\r?\n")

	def request(self, connection, information, players, rules):
		status = self.ESCAPE.sub(lambda match: bytes((int(match.group(1), 16),)), self.collect(connection))
		rules = information["rules"]
		channelfields = 5
		clientfields = 7
		for line in self.LINE.split(text(status)):
			(key, separator, value) = line.strip().partition(":")
			if not separator or not key:
				continue
			key = key.lower()
			value = value.strip()
			if key == "client":
				information["players"].append(self.items(value, clientfields))
			elif key == "channel":
				information["teams"].append(self.items(value, channelfields))
			elif key == "channelfields":
				channelfields = len(value.split(","))
			elif key == "clientfields":
				clientfields = len(value.split(","))
			else:
				rules[key] = value
		information["servertitle"] = rules.get("name") or self.host
		information["gameversion"] = rules.get("version", "")
		information["numplayers"] = toint(rules.get("clientcount"))
		information["maxplayers"] = toint(rules.get("maxclients"))
		if "auth" in rules:
			information["password"] = 1 if toint(rules["auth"]) else 0
		if not players:
			information["players"] = []

	def collect(self, connection):
		datagrams = [connection.send(self.REQUEST_STATUS)]
		while len(datagrams) < self.MAXPACKETS and len(datagrams[-1]) >= self.DATAGRAM:
			try:
				datagrams.append(connection.recv())
			except QueryError as error:
				log.debug("%s:%d sent %d full datagrams and stopped: %s", self.host, self.port, len(datagrams), error)
				break
		parts = {}
		for packet in datagrams:
			(header, data) = cipher.decryptpacket(packet)
			parts[header["pck"]] = data
		return b"".join(parts[index] for index in sorted(parts))

	def items(self, value, fields):
		record = {}
		for item in value.split(",", max(fields - 1, 0)):
			(name, separator, setting) = item.partition("=")
			record[name.lower()] = setting
		return record

class minecraft(none):

	"""
	Minecraft server list ping over TCP
	"""

	PROTOCOL	= "minecraft"
	PORT		= 25565
	CLIENT		= TcpClient

	HANDSHAKE_VERSION	= -1
	MAXPACKET			= 1 << 21

	def request(self, connection, information, players, rules):
		handshake = b"\x00" + packvarint(self.HANDSHAKE_VERSION) + packstring(self.host) + struct.pack(">H", self.port) + b"\x01"
		connection.send(packvarint(len(handshake)) + handshake + packvarint(1) + b"\x00")
		length = readvarint(connection)
		if not 0 < length <= self.MAXPACKET:
			raise QueryError(MALFORMED_HEADER, "status packet of %d bytes" % length)
		packet = ByteCursor(connection.read_bytes(length))
		if readvarint(packet) != 0:
			raise QueryError(MALFORMED_HEADER, "not a status response")
		try:
			status = json.loads(text(packet.read_bytes(readvarint(packet))))
			if not isinstance(status, dict):
				raise QueryError(MALFORMED_HEADER, "status json is not an object")
			title = self.flatten(status.get("description", ""))
		except (ValueError, RecursionError) as error:
			raise QueryError(MALFORMED_HEADER, "status json: %s" % error)

		information["servertitle"] = title or self.host
		version = self.section(status, "version")
		information["gameversion"] = str(version.get("name", ""))
		if "protocol" in version:
			information["rules"]["protocol"] = toint(version["protocol"])
		playerinfo = self.section(status, "players")
		information["numplayers"] = toint(playerinfo.get("online"))
		information["maxplayers"] = toint(playerinfo.get("max"))
		sample = playerinfo.get("sample")
		if players and isinstance(sample, list):
			information["players"] = [
				{"name": str(player.get("name", "")), "id": str(player.get("id", ""))}
				for player in sample if isinstance(player, dict)
			]

	def section(self, status, key):
		value = status.get(key)
		if isinstance(value, dict):
			return value
		return {}

	def flatten(self, component):
		if isinstance(component, str):
			return component
		if isinstance(component, list):
			return "".join(self.flatten(part) for part in component)
		if isinstance(component, dict):
			return self.flatten(component.get("text", "")) + self.flatten(component.get("extra", []))
		return ""

PROTOCOLS = dict((decoder.PROTOCOL, decoder) for decoder in (source, gs, gs2, gs3, q3, qw, ase, torque, tribes2, launcher, ventrilo, minecraft))
