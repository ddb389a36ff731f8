from . import *
from collections import namedtuple

FIELDS = (
	"address",
	"queryport",
	"online",
	"protocol",
	"gamename",
	"gameversion",
	"servertitle",
	"mapname",
	"gametype",
	"numplayers",
	"maxplayers",
	"password",
	"rules",
	"players",
	"teams",
	"maplist",
	"errstr",
)

class ServerInfo(namedtuple("ServerInfo", FIELDS)):

	"""
	What one query learned about a server. password is -1 when unknown,
	0 or 1 otherwise; rules values are str, int, bool or a list of str.
	"""

	__slots__ = ()

	def playerkeys(self):
		keys = []
		for player in self.players:
			keys += [key for key in player if key not in keys]
		return keys

def blank(address, port, protocol, gamename = ""):
	return {
		"address":		address,
		"queryport":	port,
		"online":		False,
		"protocol":		protocol,
		"gamename":		gamename or "",
		"gameversion":	"",
		"servertitle":	"",
		"mapname":		"",
		"gametype":		"",
		"numplayers":	0,
		"maxplayers":	0,
		"password":		-1,
		"rules":		{},
		"players":		[],
		"teams":		[],
		"maplist":		[],
		"errstr":		None,
	}

def finish(information):
	if not (information["servertitle"] or information["mapname"]):
		raise QueryError(MALFORMED_HEADER, "reply carried neither a server title nor a map")
	for player in information["players"]:
		if player.get("name") is None:
			player["name"] = ""
	information["online"] = True
	information["errstr"] = None
	return ServerInfo(**information)

def offline(address, port, protocol, error, gamename = ""):
	information = blank(address, port, protocol, gamename)
	information["errstr"] = str(error)
	return ServerInfo(**information)

def sortplayers(players, key = "name", reverse = False):
	"""
	Orders player records by one of their fields. Records without the
	field go last, numbers sort numerically and names case-insensitively.
	"""
	def order(player):
		value = player.get(key)
		if value is None:
			return (2, 0, "")
		if isinstance(value, (int, float)):
			return (0, value, "")
		return (1, 0, str(value).lower())
	return sorted(players, key = order, reverse = reverse)
