import html, re

OUTPUT_TEXT = 0
OUTPUT_HTML = 1
OUTPUT_ANSI = 2

ANSI_RESET = "\033[0;0m"

class none:

	"""
	Colour codes in player and server names. parse() strips them, or turns
	them into HTML spans or ANSI escapes depending on mode.
	"""

	CODE = None

	def __init__(self, mode = OUTPUT_TEXT):
		self.mode = mode

	def runs(self, string):
		if self.CODE is None:
			return [(None, string)]
		pieces = self.CODE.split(string)
		runs = [(None, pieces[0])]
		for index in range(1, len(pieces), 2):
			runs.append((pieces[index], pieces[index + 1]))
		return runs

	def parse(self, string):
		currentcode = None
		output = ""
		for (code, run) in self.runs(string):
			if code is not None:
				output += self.parsecode(currentcode, code)
				currentcode = code
			output += html.escape(run, False) if self.mode == OUTPUT_HTML else run
		return output + self.parsecode(currentcode)

	def parsecode(self, currentcode = None, newcode = None):
		return ""

class q3(none):
	CODE = re.compile(r"\^([^\^])", re.S)

	COLORS_HTML = {
		"0": "000000", "1": "DA0120", "2": "00B906", "3": "E8FF19",
		"4": "170BDB", "5": "23C2C6", "6": "E201DB", "7": "FFFFFF",
		"8": "CA7C27", "9": "757575", "a": "EB9F53", "b": "106F59",
		"c": "5A134F", "d": "035AFF", "e": "681EA7", "f": "5097C1",
		"g": "BEDAC4", "h": "024D2C", "i": "7D081B", "j": "90243E",
		"k": "743313", "l": "A7905E", "m": "555C26", "n": "AEAC97",
		"o": "C0BF7F", "p": "000000", "q": "DA0120", "r": "00B906",
		"s": "E8FF19", "t": "170BDB", "u": "23C2C6", "v": "E201DB",
		"w": "FFFFFF", "x": "CA7C27", "y": "757575", "z": "CC8034",
		"/": "DBDF70", "*": "BBBBBB", "-": "747228", "+": "993400",
		"?": "670504", "@": "623307",
	}

	COLORS_ANSI = {
		"0": "0;30m", "1": "0;31m", "2": "0;32m", "3": "1;33m", "4": "0;34m",
		"5": "1;34m", "6": "1;35m", "7": "1;37m", "8": "0;33m", "9": "1;30m",
	}

	def parsecode(self, currentcode = None, newcode = None):
		output = ""
		if newcode is not None:
			newcode = newcode.lower()
		if currentcode == newcode or self.mode == OUTPUT_TEXT:
			pass
		elif self.mode == OUTPUT_HTML:
			if currentcode is not None and currentcode.lower() in self.COLORS_HTML:
				output += "</span>"
			if newcode in self.COLORS_HTML:
				output += "<span style=\"color:#%s;\">" % self.COLORS_HTML[newcode]
		elif self.mode == OUTPUT_ANSI:
			if currentcode is None or newcode is None:
				output += ANSI_RESET
			if newcode in self.COLORS_ANSI:
				output += "\033[%s" % self.COLORS_ANSI[newcode]
		return output

class unreal(none):
	CODE = re.compile("\x1b(...)", re.S)

	def parsecode(self, currentcode = None, newcode = None):
		output = ""
		if currentcode == newcode or self.mode == OUTPUT_TEXT:
			pass
		elif self.mode == OUTPUT_HTML:
			if currentcode is not None:
				output += "</span>"
			if newcode is not None:
				output += "<span style=\"color:rgb(%d,%d,%d);\">" % tuple(ord(x) for x in newcode)
		elif self.mode == OUTPUT_ANSI:
			if currentcode is None or newcode is None:
				output += ANSI_RESET
		return output

STYLES = {"q3": q3, "unreal": unreal}

def strip(string, style = "q3"):
	return STYLES.get(style, none)(OUTPUT_TEXT).parse(string)
