"""
Per game settings: which decoder speaks to it, the usual query port, and
how the query port relates to the port players connect to.
"""

from collections import namedtuple
from . import colorizer, servers

Game = namedtuple("Game", ("name", "protocol", "port", "offset", "colors", "options"))

def game(name, protocol, port, offset = 0, colors = None, **options):
	return Game(name, protocol, port, offset, colors, options)

GAMES = {
	"cs16":			game("Counter-Strike 1.6", "source", 27015, goldsource = True),
	"halflife":		game("Half-Life", "source", 27015, goldsource = True),
	"css":			game("Counter-Strike: Source", "source", 27015),
	"csgo":			game("Counter-Strike: Global Offensive", "source", 27015),
	"cs2":			game("Counter-Strike 2", "source", 27015),
	"tf2":			game("Team Fortress 2", "source", 27015),
	"gmod":			game("Garry's Mod", "source", 27015),
	"l4d2":			game("Left 4 Dead 2", "source", 27015),
	"rust":			game("Rust", "source", 28015),
	"ark":			game("ARK: Survival Evolved", "source", 27015),
	"bf1942":		game("Battlefield 1942", "gamespy", 23000, 8433),
	"ut":			game("Unreal Tournament", "gamespy", 7778, 1, colors = "unreal"),
	"bfv":			game("Battlefield Vietnam", "gamespy2", 23000, 7433),
	"bf2":			game("Battlefield 2", "gamespy3", 29900),
	"bf2142":		game("Battlefield 2142", "gamespy3", 29900),
	"jc2mp":		game("Just Cause 2 Multiplayer", "gamespy3", 7777),
	"q3a":			game("Quake 3 Arena", "quake3", 27960, colors = "q3"),
	"cod":			game("Call of Duty", "quake3", 28960, colors = "q3"),
	"cod2":			game("Call of Duty 2", "quake3", 28960, colors = "q3"),
	"cod4":			game("Call of Duty 4", "quake3", 28960, colors = "q3"),
	"mohaa":		game("Medal of Honor: Allied Assault", "quake3", 12300, 97, colors = "q3", mohaa = True),
	"urt":			game("Urban Terror", "quake3", 27960, colors = "q3"),
	"et":			game("Wolfenstein: Enemy Territory", "quake3", 27960, colors = "q3"),
	"quakeworld":	game("QuakeWorld", "quakeworld", 27500, colors = "q3"),
	"mta":			game("Multi Theft Auto", "ase", 22126, 123),
	"tribes2":		game("Tribes 2", "tribes2", 28000),
	"blockland":	game("Blockland", "torque", 28000),
	"ageoftime":	game("Age of Time", "torque", 28000),
	"skulltag":		game("Skulltag", "launcher", 10666),
	"zandronum":	game("Zandronum", "launcher", 10666),
	"ventrilo":		game("Ventrilo", "ventrilo", 3784),
	"minecraft":	game("Minecraft", "minecraft", 25565),
}

def create(name, host, port = None, **kwargs):
	"""
	Builds the decoder for a game. port is the game port players connect
	to; the query port is derived from it with the game's offset.
	"""
	try:
		profile = GAMES[name]
	except KeyError:
		raise ValueError("unknown game %r" % name)
	options = dict(profile.options)
	options.update(kwargs)
	options.setdefault("gamename", profile.name)
	if port is None:
		queryport = profile.port
	else:
		queryport = int(port) + profile.offset
	return servers.PROTOCOLS[profile.protocol](host, queryport, **options)

def strip(name, string):
	"""
	Removes the colour codes a game puts in names.
	"""
	return colorizer.strip(string, GAMES[name].colors)
