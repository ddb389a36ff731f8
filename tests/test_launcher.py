import struct

from gamequery import huffman, servers

launcher = servers.launcher

REQUESTED = launcher.SQF_NAME | launcher.SQF_MAPNAME | launcher.SQF_MAXPLAYERS | launcher.SQF_NUMPLAYERS

def reply(flags, *fields):
	data = struct.pack("<ii", launcher.SERVER_LAUNCHER_CHALLENGE, 1234) + b"3.1\x00" + struct.pack("<I", flags)
	return huffman.compress(data + b"".join(fields))

def player(name, score, ping, spectator = 0, bot = 0, team = 255, time = 7):
	return name + b"\x00" + struct.pack("<hH", score, ping) + bytes((spectator, bot, team, time))

def test_status_with_players(fake):
	flags = REQUESTED | launcher.SQF_PLAYERDATA
	answer = reply(flags, b"Doom Server\x00", b"MAP01\x00", b"\x10", b"\x02",
		player(b"Player", 25, 40), player(b"Bot", -2, 0, bot = 1, team = 1))
	client = fake([answer])
	information = launcher("127.0.0.1", client = client).query()
	(challenge, sentflags, timestamp, zero) = struct.unpack("<iIii", huffman.decompress(client.sent[0]))
	assert challenge == 199
	assert sentflags == flags
	assert zero == 0
	assert information.online
	assert information.gameversion == "3.1"
	assert information.servertitle == "Doom Server"
	assert information.mapname == "MAP01"
	assert information.maxplayers == 16
	assert information.numplayers == 2
	assert information.players == [
		{"name": "Player", "score": 25, "ping": 40, "spectator": False, "bot": False, "team": 255, "time": 7},
		{"name": "Bot", "score": -2, "ping": 0, "spectator": False, "bot": True, "team": 1, "time": 7},
	]

def test_status_without_players(fake):
	client = fake([reply(REQUESTED, b"Doom Server\x00", b"MAP01\x00", b"\x10", b"\x00")])
	information = launcher("127.0.0.1", client = client).query(players = False)
	assert struct.unpack("<iIii", huffman.decompress(client.sent[0]))[1] == REQUESTED
	assert information.numplayers == 0
	assert information.players == []

def test_fields_are_read_in_flag_order(fake):
	information = launcher("127.0.0.1", client = fake([reply(launcher.SQF_NAME | launcher.SQF_NUMPLAYERS, b"Named\x00", b"\x03")])).query(players = False)
	assert information.servertitle == "Named"
	assert information.numplayers == 3
	assert information.mapname == ""

def test_unrequested_field_is_malformed(fake):
	information = launcher("127.0.0.1", client = fake([reply(REQUESTED | 0x2, b"Doom\x00")])).query(players = False)
	assert information.errstr.startswith("MalformedHeader")

def test_ignoring_and_banned_are_no_response(fake):
	for code in (launcher.SERVER_LAUNCHER_IGNORING, launcher.SERVER_LAUNCHER_BANNED):
		information = launcher("127.0.0.1", client = fake([huffman.compress(struct.pack("<i", code))])).query()
		assert not information.online
		assert information.errstr.startswith("NoResponse")

def test_segmented_reply_is_refused(fake):
	answer = huffman.compress(struct.pack("<ii", launcher.SERVER_LAUNCHER_SEGMENTED, 0))
	information = launcher("127.0.0.1", client = fake([answer])).query()
	assert information.errstr.startswith("MalformedHeader")

def test_broken_player_data_keeps_the_rest(fake):
	flags = REQUESTED | launcher.SQF_PLAYERDATA
	answer = reply(flags, b"Doom Server\x00", b"MAP01\x00", b"\x10", b"\x02", player(b"Player", 25, 40), b"Cut")
	information = launcher("127.0.0.1", client = fake([answer])).query()
	assert information.online
	assert information.servertitle == "Doom Server"
	assert information.players == []

def test_undecodable_reply(fake):
	information = launcher("127.0.0.1", client = fake([b"\x09\x00"])).query()
	assert information.errstr.startswith("MalformedCompressedData")
