# mediadrive/version.py - SINGLE SOURCE OF TRUTH for version string
"""
This is the ONLY place where VERSION is defined.
pyproject.toml and the CLI read it from here.
"""

VERSION = "0.1.0"
