"""
rendercaps package.

This package contains:
- Capability sets describing what a render system supports
- The ``.rendercaps`` script reader and writer
- A registry that loads named capability sets from script archives
"""

__version__ = "0.1.0"
