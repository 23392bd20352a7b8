"""
Activation records for the bytecode VM.

A frame has two links, and they mean different things:

* ``previous`` is who to go back to on RET: the call-stack order.
* ``parent`` is where to look for names this frame does not hold itself.

A block frame's parent is the frame it appears in. A called function's parent is
the global frame, never the caller, so a callee cannot see its caller's locals.
"""
from typing import Optional
from ..diagnostics import Failure
from .values import StackValue

class VMFailure(Failure):
	phase = "runtime"
	def __init__(self, message:str, offset:int=None):
		super().__init__(message)
		self.offset = offset
	def __str__(self):
		if self.offset is None: return self.message
		return "%s (at offset %d)" % (self.message, self.offset)

class StackFrame:
	_stack: list[StackValue]
	_named: dict[str, StackValue]
	markers: dict[str, int]

	def __init__(self, name:str, return_pointer:Optional[int], previous:Optional["StackFrame"], parent:Optional["StackFrame"]):
		self.name = name
		self.return_pointer = return_pointer
		self.previous = previous
		self.parent = parent
		self.depth = 0 if previous is None else previous.depth + 1
		self._stack = []
		self._named = {}
		self.markers = {}

	def __repr__(self): return "<Frame %s @%d>" % (self.name or "(block)", self.depth)

	def push(self, value:StackValue):
		self._stack.append(value)

	def pop(self) -> StackValue:
		if not self._stack:
			raise VMFailure("Operand stack underflow in %r" % self)
		return self._stack.pop()

	def peek(self) -> StackValue:
		if not self._stack:
			raise VMFailure("Operand stack is empty in %r" % self)
		return self._stack[-1]

	def is_empty(self) -> bool: return not self._stack

	def holds(self, name:str) -> bool: return name in self._named

	def bind_local(self, name:str, value:StackValue):
		self._named[name] = value

	def _owner(self, name:str) -> Optional["StackFrame"]:
		frame = self
		while frame is not None:
			if name in frame._named: return frame
			frame = frame.parent

	def set_named_value(self, name:str, value:StackValue):
		""" Write where the name already lives, if anywhere; otherwise right here. """
		owner = self._owner(name) or self
		owner._named[name] = value

	def get_named_value(self, name:str) -> StackValue:
		owner = self._owner(name)
		if owner is None:
			raise VMFailure("There is no value named %r in scope" % name)
		return owner._named[name]

	def scope_root(self) -> "StackFrame":
		frame = self
		while frame.parent is not None:
			frame = frame.parent
		return frame
