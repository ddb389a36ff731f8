import pytest

from gamequery import games, servers
from gamequery.exchange import SINGLE

def test_every_game_has_a_decoder():
	for profile in games.GAMES.values():
		assert profile.protocol in servers.PROTOCOLS

def test_default_query_port():
	decoder = games.create("cs16", "10.0.0.1")
	assert isinstance(decoder, servers.source)
	assert decoder.port == 27015
	assert decoder.gamename == "Counter-Strike 1.6"
	assert decoder.options == {"goldsource": True}

def test_query_port_from_game_port():
	assert games.create("bf1942", "10.0.0.1", 14567).port == 23000
	assert games.create("ut", "10.0.0.1", 7777).port == 7778
	assert games.create("mohaa", "10.0.0.1", 12203).port == 12300
	assert games.create("q3a", "10.0.0.1", 27961).port == 27961

def test_overrides(fake):
	client = fake()
	decoder = games.create("mohaa", "10.0.0.1", gamename = "mohaa", client = client, timeout = 1)
	assert decoder.gamename == "mohaa"
	assert decoder.client is client
	assert decoder.options == {"mohaa": True}
	decoder.connect()
	assert client.kwargs == {"timeout": 1}

def test_unknown_game():
	with pytest.raises(ValueError):
		games.create("nosuchgame", "10.0.0.1")

def test_profile_name_reaches_the_result(fake):
	reply = SINGLE + b"statusResponse\n\\hostname\\^1Red ^7Arena\\mapname\\q3dm6\\gamename\\baseq3\n"
	information = games.create("q3a", "127.0.0.1", client = fake([reply])).query()
	assert information.gamename == "Quake 3 Arena"
	assert information.address == "127.0.0.1"
	assert information.queryport == 27960
	assert games.strip("q3a", information.servertitle) == "Red Arena"

def test_strip_uses_the_game_colour_style():
	assert games.strip("q3a", "^1Red^7Arena") == "RedArena"
	assert games.strip("ut", "\x1b\xff\x00\x00Red") == "Red"
	assert games.strip("cs16", "^1Red") == "^1Red"
	with pytest.raises(KeyError):
		games.strip("nosuchgame", "x")
