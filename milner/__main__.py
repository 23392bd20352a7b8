"""
So that ``python -m milner`` does the same as the ``milner`` command.
"""
from .cmdline import main

main()
