"""
Checks that happen before any code is generated.
"""
