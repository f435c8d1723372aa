"""
Content: grammar topic reference data.

Core modules:
- catalog: seed list of A1-B1 grammar topics
"""

from .catalog import load_catalog

__all__ = ["load_catalog"]
