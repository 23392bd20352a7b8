"""
This is the command-line driver for the Milner toolchain.

{0}

For example:

    milner run examples/countdown.mil

will check, compile, and run that program, exiting with whatever code its main returns.

    milner build examples/countdown.mil -o countdown.mbc
    milner run --bytecode countdown.mbc
    milner disassemble examples/countdown.mil

build a bytecode file, run it, and show what the compiler made of the program.

    milner -h

will explain all the arguments.
"""
import sys, argparse
from pathlib import Path

EXIT_BAD_PROGRAM = 65   # Could not parse, type-check, or compile.
EXIT_VM_FAILURE = 70    # The program went wrong while running.

parser = argparse.ArgumentParser(
	prog="milner",
	description="Type checker, compiler, and virtual machine for the Milner language.",
)
parser.add_argument('-v', "--verbose", action="count", default=0, help="Say more about what is going on. Twice traces every instruction.")
commands = parser.add_subparsers(dest="command", metavar="COMMAND")

_check = commands.add_parser("check", help="Parse and type-check a source file.")
_check.add_argument("program", help="A .mil source file")

_build = commands.add_parser("build", help="Compile a source file to bytecode.")
_build.add_argument("program", help="A .mil source file")
_build.add_argument('-o', "--output", help="Where to write the bytecode. Defaults to the program name with .mbc")

_run = commands.add_parser("run", help="Run a program.")
_run.add_argument("program", help="A .mil source file, or bytecode with --bytecode")
_run.add_argument("--bytecode", action="store_true", help="The program is already compiled.")
_run.add_argument("--max-depth", type=int, default=None, help="How deep the call stack may grow.")

_dis = commands.add_parser("disassemble", help="Print the bytecode for a program.")
_dis.add_argument("program", help="A .mil source file, or bytecode with --bytecode")
_dis.add_argument("--bytecode", action="store_true", help="The program is already compiled.")

class Quit(Exception):
	""" Carries an exit code out of the middle of things. """

def _read(path:Path, report, binary=False):
	try:
		return path.read_bytes() if binary else path.read_text(encoding="utf-8")
	except OSError:
		report.no_such_file(path)
		report.complain_to_console()
		raise Quit(EXIT_BAD_PROGRAM)

def _checked_module(path:Path, report):
	from .front_end import parse_text, ParseFailure
	from .static.check import TypeChecker
	from .diagnostics import Failure
	text = _read(path, report)
	report.attach_source(text, path)
	try:
		module = parse_text(text, path)
		TypeChecker(report).check_program(module)
	except ParseFailure as ex:
		report.parse_error(ex.describe(), ex.kind(), ex.span())
	except Failure as ex:
		report.failure(ex)
	else:
		return module
	report.complain_to_console()
	raise Quit(EXIT_BAD_PROGRAM)

def _compiled(path:Path, report) -> bytes:
	from .compiler import compile_program, CompileFailure
	module = _checked_module(path, report)
	try: return compile_program(module)
	except CompileFailure as ex:
		report.failure(ex)
		report.complain_to_console()
		raise Quit(EXIT_BAD_PROGRAM)

def _code(args, report) -> bytes:
	path = Path(args.program)
	return _read(path, report, binary=True) if args.bytecode else _compiled(path, report)

def check(args, report):
	_checked_module(Path(args.program), report)
	print("Looks plausible to me.", file=sys.stderr)
	return 0

def build(args, report):
	code = _compiled(Path(args.program), report)
	target = Path(args.output) if args.output else Path(args.program).with_suffix(".mbc")
	target.write_bytes(code)
	report.info("Wrote %d bytes to %s" % (len(code), target))
	return 0

def run(args, report):
	from .vm.executive import Interpreter, VMFailure, DEFAULT_MAX_DEPTH
	code = _code(args, report)
	vm = Interpreter(
		sink=sys.stdout,
		max_depth=args.max_depth or DEFAULT_MAX_DEPTH,
		report=report,
		trace=args.verbose > 1,
	)
	try:
		exit_code = vm.interpret(code)
	except VMFailure as ex:
		sys.stdout.flush()
		report.runtime_failure(ex, ex.offset)
		report.complain_to_console()
		return EXIT_VM_FAILURE
	sys.stdout.flush()
	return exit_code

def disassemble(args, report):
	from .disassembler import disassemble as listing
	from .bytecode import MalformedBytecode
	code = _code(args, report)
	try: lines = listing(code)
	except MalformedBytecode as ex:
		report.malformed_bytecode(ex.message, ex.offset)
		report.complain_to_console()
		return EXIT_BAD_PROGRAM
	for line in lines:
		print(line)
	return 0

COMMANDS = {"check": check, "build": build, "run": run, "disassemble": disassemble}

def dispatch(args) -> int:
	from .diagnostics import Report, TooManyIssues
	report = Report(verbose=args.verbose)
	try:
		return COMMANDS[args.command](args, report)
	except Quit as q:
		return q.args[0]
	except TooManyIssues:
		report.complain_to_console()
		return EXIT_BAD_PROGRAM

def main(argv=None):
	args = parser.parse_args(argv)
	if args.command is None:
		print(__doc__.strip().format(parser.format_usage()))
		return
	sys.exit(dispatch(args))
