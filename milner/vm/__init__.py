"""
The bytecode virtual machine.
"""
