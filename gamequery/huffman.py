"""
Huffman coding for the Skulltag and Zandronum launcher protocol.

A coded packet starts with one byte giving the number of unused bits at
the end of the last byte, followed by the codes packed least significant
bit first. 0xFF in place of the padding count means the rest is stored
uncompressed.
"""

from . import *

UNCOMPRESSED = 0xFF

CODES = {
	0x00: "010", 0x01: "110111", 0x02: "101110010", 0x03: "00100",
	0x04: "10011011", 0x05: "00101", 0x06: "100110101", 0x07: "100001100",
	0x08: "100101100", 0x09: "001110100", 0x0A: "011001001", 0x0B: "11001000",
	0x0C: "101100001", 0x0D: "100100111", 0x0E: "001111111", 0x0F: "101110000",
	0x10: "101110001", 0x11: "001111011", 0x12: "11011011", 0x13: "101111100",
	0x14: "100001110", 0x15: "110011111", 0x16: "101100000", 0x17: "001111100",
	0x18: "0011000", 0x19: "001111000", 0x1A: "10001100", 0x1B: "100101011",
	0x1C: "100010000", 0x1D: "101111011", 0x1E: "100100110", 0x1F: "100110010",
	0x20: "0111", 0x21: "1111000", 0x22: "00010001", 0x23: "00011010",
	0x24: "00011000", 0x25: "00010101", 0x26: "00010000", 0x27: "00110111",
	0x28: "00110110", 0x29: "00011100", 0x2A: "01100101", 0x2B: "1101001",
	0x2C: "00110100", 0x2D: "10110011", 0x2E: "10110100", 0x2F: "1111011",
	0x30: "10111100", 0x31: "10111010", 0x32: "11001001", 0x33: "11010101",
	0x34: "11111110", 0x35: "11111100", 0x36: "10001110", 0x37: "11110011",
	0x38: "001101011", 0x39: "10000000", 0x3A: "000101101", 0x3B: "11010000",
	0x3C: "001110111", 0x3D: "100000010", 0x3E: "11100111", 0x3F: "001100101",
	0x40: "11100110", 0x41: "00111001", 0x42: "10001010", 0x43: "00010011",
	0x44: "001110110", 0x45: "10001111", 0x46: "000111110", 0x47: "11000111",
	0x48: "11010111", 0x49: "11100011", 0x4A: "000101000", 0x4B: "001100111",
	0x4C: "11010100", 0x4D: "000111010", 0x4E: "10010111", 0x4F: "100000111",
	0x50: "000100100", 0x51: "001110001", 0x52: "11111010", 0x53: "100100011",
	0x54: "11110100", 0x55: "000110111", 0x56: "001111010", 0x57: "100010011",
	0x58: "100110001", 0x59: "11101", 0x5A: "110001011", 0x5B: "101110110",
	0x5C: "101111110", 0x5D: "100100010", 0x5E: "100101001", 0x5F: "01101",
	0x60: "100100100", 0x61: "101100101", 0x62: "110100011", 0x63: "100111100",
	0x64: "110110001", 0x65: "100010010", 0x66: "101101101", 0x67: "011001110",
	0x68: "011001101", 0x69: "11111101", 0x6A: "100010001", 0x6B: "100110000",
	0x6C: "110001000", 0x6D: "110110000", 0x6E: "0001001010", 0x6F: "110001010",
	0x70: "101101010", 0x71: "000110110", 0x72: "10110001", 0x73: "110001101",
	0x74: "110101101", 0x75: "110001100", 0x76: "000111111", 0x77: "110010101",
	0x78: "111000100", 0x79: "11011001", 0x7A: "110010110", 0x7B: "110011110",
	0x7C: "000101100", 0x7D: "001110101", 0x7E: "101111101", 0x7F: "1001110",
	0x80: "0000", 0x81: "1000010", 0x82: "0001110111", 0x83: "0001100101",
	0x84: "1010", 0x85: "11001110", 0x86: "0110011000", 0x87: "0110011001",
	0x88: "1000011011", 0x89: "1001100110", 0x8A: "0011110011", 0x8B: "0011001100",
	0x8C: "11111001", 0x8D: "0110010001", 0x8E: "0001010011", 0x8F: "1000011010",
	0x90: "0001001011", 0x91: "1001101001", 0x92: "101110111", 0x93: "1000001101",
	0x94: "1000011111", 0x95: "1100000101", 0x96: "0110000010", 0x97: "1011011101",
	0x98: "11110101", 0x99: "0001111011", 0x9A: "1101000101", 0x9B: "1101000100",
	0x9C: "1001000010", 0x9D: "0110000011", 0x9E: "1011001000", 0x9F: "100101010",
	0xA0: "1100110", 0xA1: "111100101", 0xA2: "1100101111", 0xA3: "0001100111",
	0xA4: "1110000", 0xA5: "0011111100", 0xA6: "11111011", 0xA7: "1100101110",
	0xA8: "101110011", 0xA9: "1001100111", 0xAA: "1001111111", 0xAB: "1011011100",
	0xAC: "111110001", 0xAD: "101111010", 0xAE: "1011010110", 0xAF: "1001010000",
	0xB0: "1001000011", 0xB1: "1001111110", 0xB2: "0011111011", 0xB3: "1000011110",
	0xB4: "1000101100", 0xB5: "01100001", 0xB6: "00010111", 0xB7: "1000000110",
	0xB8: "110000101", 0xB9: "0001111010", 0xBA: "0011001101", 0xBB: "0110011110",
	0xBC: "110010100", 0xBD: "111000101", 0xBE: "0011001001", 0xBF: "0011110010",
	0xC0: "110000001", 0xC1: "101101111", 0xC2: "0011111101", 0xC3: "110110100",
	0xC4: "11100100", 0xC5: "1011001001", 0xC6: "0011001000", 0xC7: "0001110110",
	0xC8: "111111111", 0xC9: "110101100", 0xCA: "111111110", 0xCB: "1000001011",
	0xCC: "1001011010", 0xCD: "110000000", 0xCE: "000111100", 0xCF: "111110000",
	0xD0: "011000000", 0xD1: "1001111010", 0xD2: "111001011", 0xD3: "011000111",
	0xD4: "1001000001", 0xD5: "1001111100", 0xD6: "1000110111", 0xD7: "1001101000",
	0xD8: "0110001100", 0xD9: "1001111011", 0xDA: "0011010101", 0xDB: "1000101101",
	0xDC: "0011111010", 0xDD: "0001100100", 0xDE: "01100010", 0xDF: "110000100",
	0xE0: "101101100", 0xE1: "0110011111", 0xE2: "1001011011", 0xE3: "1000101110",
	0xE4: "111100100", 0xE5: "1000110110", 0xE6: "0110001101", 0xE7: "1001000000",
	0xE8: "110110101", 0xE9: "1000001000", 0xEA: "1000001001", 0xEB: "1100000100",
	0xEC: "110001001", 0xED: "1000000111", 0xEE: "1001111101", 0xEF: "111001010",
	0xF0: "0011010100", 0xF1: "1000101111", 0xF2: "101111111", 0xF3: "0001010010",
	0xF4: "0011100000", 0xF5: "0001100110", 0xF6: "1000001010", 0xF7: "0011100001",
	0xF8: "11000011", 0xF9: "1011010111", 0xFA: "1000001100", 0xFB: "100011010",
	0xFC: "0110010000", 0xFD: "100100101", 0xFE: "1001010001", 0xFF: "110000011",
}

DECODES = dict((code, byte) for (byte, code) in CODES.items())
SHORTEST = min(len(code) for code in DECODES)
LONGEST = max(len(code) for code in DECODES)

def compress(data):
	bits = "".join(CODES[byte] for byte in bytes(data))
	padding = -len(bits) % 8
	bits += "0" * padding
	coded = bytes(int(bits[index:index + 8][::-1], 2) for index in range(0, len(bits), 8))
	if len(coded) >= len(data):
		return bytes((UNCOMPRESSED,)) + bytes(data)
	return bytes((padding,)) + coded

def decompress(data):
	if not data:
		raise QueryError(MALFORMED_COMPRESSED, "empty huffman packet")
	padding = data[0]
	if padding == UNCOMPRESSED:
		return bytes(data[1:])
	if padding > 7:
		raise QueryError(MALFORMED_COMPRESSED, "padding of %d bits" % padding)
	bits = "".join("{0:08b}".format(byte)[::-1] for byte in data[1:])
	end = len(bits) - padding
	if end < 0:
		raise QueryError(MALFORMED_COMPRESSED, "padding longer than the payload")
	output = bytearray()
	index = 0
	while index < end:
		for length in range(SHORTEST, LONGEST + 1):
			if index + length > end:
				raise QueryError(MALFORMED_COMPRESSED, "stream ends inside a code at bit %d" % index)
			byte = DECODES.get(bits[index:index + length])
			if byte is not None:
				output.append(byte)
				index += length
				break
	return bytes(output)
