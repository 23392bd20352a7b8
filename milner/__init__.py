"""
A small statically-typed language: Hindley-Milner inference, a bytecode compiler, and a stack VM.
"""
