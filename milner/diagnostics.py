"""
Everything about telling the user that something went wrong, and where.

Each phase raises a Failure (or the front end raises a ParseFailure);
the command line catches it, files it with a Report, and the Report
draws pictures of the offending source lines on stderr.
"""
import sys, random
from typing import Optional, Any
from boozetools.support.failureprone import SourceText, illustration
from .ontology import Phrase

class TooManyIssues(Exception):
	pass

class Failure(Exception):
	""" Something that stops a phase cold. Subclasses say which phase. """
	phase = "processing"
	def __init__(self, message:str, phrase:Optional[Phrase]=None):
		super().__init__(message)
		self.message = message
		self.phrase = phrase
	def __str__(self): return self.message

def _outburst():
	particle = ["Oh, ", "Well, ", "Hmm. ", "", ""]

	exclamations = [
		'Blast', 'Bother', 'Botheration', 'Dash it all', 'Gadzooks',
		'Goodness', 'Great Caesar', 'Hang it', 'Holy Moly', 'Jiminy',
		'Leaping Lizards', 'Oh Dear', 'Phooey', 'Shucks', 'Zounds',
	]

	resignations = [
		'That did not go as planned.',
		'I cannot make sense of this program.',
		'Something here needs a human touch.',
		'Best to stop here.',
	]

	return "%s%s! %s"%tuple(map(random.choice, (particle, exclamations, resignations)))

class Report:
	""" Collects issues for presentation at the console. """
	_issues : list["Pic"]

	def __init__(self, *, verbose:int=0, max_issues=3):
		self._verbose = verbose or 0   # Because None is incomparable.
		self._issues = []
		self._max_issues = max_issues
		self._source = SourceText("")

	def ok(self): return not self._issues
	def sick(self): return bool(self._issues)

	def issue(self, it:Any):
		self._issues.append(it)
		if len(self._issues) == self._max_issues:
			raise TooManyIssues(self)

	def attach_source(self, text:str, path=None):
		""" Later annotations will point into this text. """
		self._source = SourceText(text, filename=None if path is None else str(path))

	def info(self, *args):
		if self._verbose:
			print(*args, file=sys.stderr)

	def complain_to_console(self):
		""" Emit all the issues to the console. """
		_bemoan(self._issues)

	def assert_no_issues(self, message):
		""" Does what it says on the tin """
		if self._issues:
			self.complain_to_console()
			raise AssertionError(_outburst()+" "+message)

	def as_text(self) -> str:
		return "\n".join(i.as_text() for i in self._issues)

	# Methods the front-end is likely to call:
	def parse_error(self, description:str, kind:str, span:slice):
		intro = "The parser got confused by %s." % kind
		problem = [Annotation(self._source, span, "confused here")]
		self.issue(Pic(intro, problem, [description]))

	# Later phases:
	def failure(self, ex:Failure):
		intro = "Error while trying to %s: %s" % (ex.phase, ex.message)
		problem = [] if ex.phrase is None else [Annotation(self._source, ex.phrase.span(), "")]
		self.issue(Pic(intro, problem))

	def runtime_failure(self, ex:Failure, offset:int):
		intro = "Error at %s: %s" % (ex.phase, ex.message)
		self.issue(Pic(intro, [], ["Instruction offset: %d" % offset]))

	def malformed_bytecode(self, message:str, offset:int):
		self.issue(Pic("That does not look like valid bytecode: "+message, [], ["Instruction offset: %d" % offset]))

	def no_such_file(self, path):
		self.issue(Pic("I see no file called %s" % path, []))

class Annotation:
	source: SourceText
	slice: slice
	caption: str
	def __init__(self, source:SourceText, where:slice, caption:str=""):
		self.source = source
		self.slice = where
		self.caption = caption
	def illustrate(self):
		row, col = self.source.find_row_col(self.slice.start)
		single_line = self.source.line_of_text(row)
		width = self.slice.stop - self.slice.start
		return illustration(single_line, col, width, prefix='% 6d |' % row, caption=self.caption)

class Pic:
	def __init__(self, intro:str, anns:list[Annotation], footer=()):
		self._intro, self._anns, self._footer = intro, anns, footer
	def as_text(self):
		lines = [self._intro, ""]
		path = None
		for ann in self._anns:
			if ann.source.filename != path:
				path = ann.source.filename
				lines.append(str(path))
			lines.append(ann.illustrate())
		lines.extend(self._footer)
		return '\n'.join(lines)

def _bemoan(issues):
	""" Emit all the issues to the console. """
	if issues:
		print("*"*60, file=sys.stderr)
		print(_outburst(), file=sys.stderr)
	for i in issues:
		print("  -"*20, file=sys.stderr)
		print(i.as_text(), file=sys.stderr)
	sys.stderr.flush()
