"""
Pytest configuration. Keeps the project root importable when the package is
not installed.
"""
