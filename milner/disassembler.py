"""
Bytecode back into something a person can read.

Each function gets a header line, then one line per instruction.
A frame opened within a function indents the block it covers.
"""
from .bytecode import ByteReader, Opcode, OPERANDS, STRING, ADDRESS, JumpAddressing, MalformedBytecode

INDENT = "    "

def _show_operand(kind, value) -> str:
	if kind is STRING: return repr(value)
	if kind is ADDRESS:
		addressing, target = value
		return "%s %s" % (addressing.name, repr(target) if addressing is JumpAddressing.MARKER else target)
	return str(value)

def _instruction(reader:ByteReader) -> tuple[Opcode, list, str]:
	opcode = reader.read_opcode()
	kinds = OPERANDS.get(opcode, ())
	values = [reader.read_operand(k) for k in kinds]
	return opcode, values, " ".join([opcode.name] + [_show_operand(k, v) for k, v in zip(kinds, values)])

def disassemble(code:bytes) -> list[str]:
	reader = ByteReader(code)
	lines = []
	for record in reader.read_structure():
		lines.append("%s(%s):" % (record.name, ", ".join(record.arguments)))
		body = ByteReader(code)
		body.pointer = record.offset
		end = record.offset + record.length
		block_ends = []
		while body.pointer < end:
			while block_ends and block_ends[-1] <= body.pointer: block_ends.pop()
			opcode, values, text = _instruction(body)
			lines.append(INDENT * (1 + len(block_ends)) + text)
			if opcode is Opcode.START_FRAME:
				block_ends.append(body.pointer + values[0])
		if body.pointer != end:
			raise MalformedBytecode("Function %r overruns its declared length" % record.name, end)
	while not reader.at_end():
		lines.append(_instruction(reader)[2])
	return lines
