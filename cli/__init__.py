"""
Contract Script ABI - Command Line Interface package
"""

__version__ = '1.0.0'
