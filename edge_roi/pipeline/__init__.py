"""
Command-line pipeline runner.
"""
