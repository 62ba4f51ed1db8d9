"""
StoreFix - corruption recovery for on-disk key/value stores

Author: StoreFix Project
License: GNU GPL v3
"""

__version__ = "1.0.0"
