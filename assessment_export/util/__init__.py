"""
Utility functions and helpers.

Modules:
- files: Directory creation, text output and filename sanitizing
- log: Logging configuration
- progress: Console status output
"""
