"""
Text in, syntax tree out.

The grammar lives in Milner.md as a MacroParse definition. The tables get built
on demand next to it, and the MilnerParser below supplies the scan and parse actions.
Parse errors carry three arguments: what was expected, what was seen, and where.
"""
import sys
from pathlib import Path

from boozetools.macroparse.runtime import TypicalApplication, make_tables
from boozetools.scanning.engine import IterableScanner
from boozetools.parsing.interface import ParseError, END_OF_TOKENS
from . import syntax
from .ontology import Nom

class ParseFailure(ParseError):
	""" args are (description, lookahead kind, span) """
	def describe(self): return self.args[0]
	def kind(self): return self.args[1]
	def span(self) -> slice: return self.args[2]

_tables = make_tables(Path(__file__).parent/"Milner.md")
_parse_table = _tables['parser']
RESERVED = frozenset(t for t in _parse_table["terminals"] if t.isupper() and t.isalpha())

MAX_INTEGER = 2**63 - 1

_ESCAPES = {"n": "\n", "t": "\t", '"': '"', "\\": "\\"}

def _unescape(text:str) -> str:
	out, chars = [], iter(text)
	for c in chars:
		if c == "\\":
			c = next(chars)
			out.append(_ESCAPES.get(c, c))
		else:
			out.append(c)
	return "".join(out)

def _advice(kind, expected) -> str:
	if ";" in expected: return "Probably a missing semicolon just before here."
	if kind == END_OF_TOKENS and "}" in expected: return "This block never ends. Missing '}'?"
	return "Expected one of: " + " ".join(expected)

class MilnerParser(TypicalApplication):

	def scan_ignore(self, yy: IterableScanner): pass

	@staticmethod
	def scan_punctuation(yy: IterableScanner):
		punctuation = sys.intern(yy.match())
		yy.token(punctuation, Nom(punctuation, yy.slice()))

	@staticmethod
	def scan_integer(yy: IterableScanner):
		value = int(yy.match())
		if value > MAX_INTEGER: raise ParseFailure("This number is too big.", "integer", yy.slice())
		yy.token("integer", syntax.IntegerLiteral(value, yy.slice()))

	@staticmethod
	def scan_string(yy: IterableScanner):
		yy.token("string", syntax.StringLiteral(_unescape(yy.match()[1:-1]), yy.slice()))

	@staticmethod
	def scan_word(yy: IterableScanner):
		text = sys.intern(yy.match())
		upper = text.upper()
		if upper in RESERVED and text.islower(): yy.token(upper, Nom(text, yy.slice()))
		else: yy.token("name", Nom(text, yy.slice()))

	@staticmethod
	def parse_empty(): return []
	@staticmethod
	def parse_first(item): return [item]
	@staticmethod
	def parse_more(some, another):
		some.append(another)
		return some

	@staticmethod
	def parse_block(left:Nom, statements, right:Nom):
		return syntax.Block(statements, slice(left.left(), right.right()))

	@staticmethod
	def parse_group(left:Nom, inside, right:Nom):
		return syntax.Group(inside, slice(left.left(), right.right()))

	@staticmethod
	def parse_call(fn_exp, args, right:Nom):
		return syntax.Call(fn_exp, args, slice(fn_exp.left(), right.right()))

	@staticmethod
	def parse_return_nothing(kw:Nom): return syntax.BlockReturn(kw, None)
	@staticmethod
	def parse_true_literal(kw:Nom): return syntax.BooleanLiteral(True, kw.where)
	@staticmethod
	def parse_false_literal(kw:Nom): return syntax.BooleanLiteral(False, kw.where)

	@staticmethod
	def default_parse(ctor, *args):
		return getattr(syntax, ctor)(*args)

	def unexpected_token(self, kind, semantic, pds):
		if kind == END_OF_TOKENS: where = slice(self.yy.right, self.yy.right+1)
		else: where = self.yy.slice()
		raise ParseFailure(_advice(kind, self.expected_tokens(pds)), kind, where)

	def on_stuck(self, yy: IterableScanner):
		raise ParseFailure("I don't know what to make of this character.", "stray", yy.slice())

	pass

milner_parser = MilnerParser(_tables)

def parse_text(text:str, source_path=None) -> syntax.Module:
	""" Raises ParseFailure if the text does not fit the grammar. """
	module = milner_parser.parse(text, filename=None if source_path is None else str(source_path))
	module.source_path = source_path
	return module
