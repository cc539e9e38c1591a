"""Markdown Reference Generator.

Extracts JSDoc documentation from the exports of TypeScript and
JavaScript files, merges it across barrel re-exports, and renders
it as a hierarchical markdown API reference.
"""

__version__ = "0.1.0"
