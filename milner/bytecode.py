"""
The binary format shared by the compiler, the VM, and the disassembler.

Everything is little-endian. An instruction is a u16 opcode followed by its operands.
Strings are a u64 byte-count then UTF-8 bytes; integers are u64 (two's complement);
booleans are u16. The program starts with a structure section of function records,
then calls main and ends.
"""
import struct
from enum import IntEnum
from typing import NamedTuple

class Opcode(IntEnum):
	RET = 0
	CALL = 1
	PUSH_INT = 2
	LET = 3
	ECHO = 4
	LOAD = 5
	END = 6
	SUB = 7
	ADD = 8
	NEGATE_INT = 9
	PUSH_STRING = 10
	PUSH_UNIT = 11
	PUSH_BOOL = 12
	JUMP = 13
	NEGATE_BOOL = 14
	START_FRAME = 15
	MARK = 16
	LESS_THAN = 17
	LESS_THAN_EQ = 18
	GREATER_THAN = 19
	GREATER_THAN_EQ = 20
	EQUALITY = 21

class Structure(IntEnum):
	FN = 0
	END = 1

class JumpMode(IntEnum):
	IF_FALSE = 0
	ALWAYS = 1

class JumpAddressing(IntEnum):
	RELATIVE_BYTES = 0
	MARKER = 1

U16 = "u16"
U64 = "u64"
STRING = "string"
ADDRESS = "address"

# What follows each opcode in the instruction stream:
OPERANDS = {
	Opcode.CALL: (STRING,),
	Opcode.PUSH_INT: (U64,),
	Opcode.LET: (STRING,),
	Opcode.LOAD: (STRING,),
	Opcode.PUSH_STRING: (STRING,),
	Opcode.PUSH_BOOL: (U16,),
	Opcode.JUMP: (ADDRESS,),
	Opcode.MARK: (STRING,),
	Opcode.START_FRAME: (U64,),
}

class MalformedBytecode(Exception):
	def __init__(self, message:str, offset:int):
		super().__init__(message, offset)
		self.message, self.offset = message, offset
	def __str__(self): return "%s (at offset %d)" % (self.message, self.offset)

#########################

def u16(n:int) -> bytes: return struct.pack("<H", n)

def u64(n:int) -> bytes: return struct.pack("<Q", n & 0xFFFF_FFFF_FFFF_FFFF)

def string(text:str) -> bytes:
	raw = text.encode("utf-8")
	return u64(len(raw)) + raw

def encode_operand(kind, value) -> bytes:
	if kind is U16: return u16(value)
	if kind is U64: return u64(value)
	if kind is STRING: return string(value)
	if kind is ADDRESS:
		addressing, target = value
		if addressing is JumpAddressing.RELATIVE_BYTES: return u16(addressing) + u64(target)
		else: return u16(addressing) + string(target)
	assert False, kind

def instruction(opcode:Opcode, *operands) -> bytes:
	kinds = OPERANDS.get(opcode, ())
	assert len(kinds) == len(operands), (opcode, operands)
	return u16(opcode) + b"".join(encode_operand(k, v) for k, v in zip(kinds, operands))

def function_record(name:str, arg_names, body:bytes) -> bytes:
	header = u16(Structure.FN) + string(name) + u16(len(arg_names))
	header += b"".join(string(a) for a in arg_names)
	return header + u64(len(body)) + body

class InstructionWriter:
	"""
	Appends instructions to a buffer. start_group() diverts output into a fresh
	buffer until the matching end_group(), which hands back those bytes so the
	caller can measure them before splicing them in with write_raw().
	"""
	def __init__(self):
		self._buffers = [bytearray()]

	def write(self, opcode:Opcode, *operands):
		self._buffers[-1] += instruction(opcode, *operands)

	def write_raw(self, code:bytes):
		self._buffers[-1] += code

	def start_group(self):
		self._buffers.append(bytearray())

	def end_group(self) -> bytes:
		assert len(self._buffers) > 1, "end_group without start_group"
		return bytes(self._buffers.pop())

	def finish(self) -> bytes:
		assert len(self._buffers) == 1, "unbalanced groups"
		return bytes(self._buffers[0])

#########################

class FunctionRecord(NamedTuple):
	name: str
	offset: int
	arguments: tuple[str, ...]
	length: int

class ByteReader:
	def __init__(self, code:bytes):
		self.code = code
		self.pointer = 0

	def at_end(self) -> bool: return self.pointer >= len(self.code)

	def _take(self, size:int) -> bytes:
		start = self.pointer
		if start + size > len(self.code):
			raise MalformedBytecode("Bytecode ends unexpectedly", start)
		self.pointer += size
		return self.code[start:self.pointer]

	def read_u16(self) -> int: return struct.unpack("<H", self._take(2))[0]
	def read_u64(self) -> int: return struct.unpack("<Q", self._take(8))[0]
	def read_i64(self) -> int: return struct.unpack("<q", self._take(8))[0]

	def read_string(self) -> str:
		start = self.pointer
		raw = self._take(self.read_u64())
		try: return raw.decode("utf-8")
		except UnicodeDecodeError:
			raise MalformedBytecode("String operand is not UTF-8", start)

	def read_opcode(self) -> Opcode:
		start = self.pointer
		raw = self.read_u16()
		try: return Opcode(raw)
		except ValueError: raise MalformedBytecode("Unrecognized opcode %d" % raw, start)

	def read_addressing(self) -> JumpAddressing:
		start = self.pointer
		raw = self.read_u16()
		try: return JumpAddressing(raw)
		except ValueError: raise MalformedBytecode("Unrecognized jump addressing mode %d" % raw, start)

	def read_structure_tag(self) -> Structure:
		start = self.pointer
		raw = self.read_u16()
		try: return Structure(raw)
		except ValueError: raise MalformedBytecode("Unrecognized structure tag %d" % raw, start)

	def read_function_definition(self) -> FunctionRecord:
		""" Reads one record, after its FN tag, and skips over the body. """
		name = self.read_string()
		arguments = tuple(self.read_string() for _ in range(self.read_u16()))
		length = self.read_u64()
		offset = self.pointer
		self._take(length)
		return FunctionRecord(name, offset, arguments, length)

	def read_structure(self) -> list[FunctionRecord]:
		records = []
		while self.read_structure_tag() is Structure.FN:
			records.append(self.read_function_definition())
		return records

	def read_operand(self, kind):
		if kind is U16: return self.read_u16()
		if kind is U64: return self.read_i64()
		if kind is STRING: return self.read_string()
		if kind is ADDRESS:
			addressing = self.read_addressing()
			if addressing is JumpAddressing.RELATIVE_BYTES: return addressing, self.read_u64()
			else: return addressing, self.read_string()
		assert False, kind
