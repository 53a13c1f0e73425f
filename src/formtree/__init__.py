"""
Form Definition Tree (formtree) Package

In-memory model of a form under construction, and the structural editing
engine that keeps it consistent.

ARCHITECTURAL GUARANTEE:
------------------------
This package contains ZERO knowledge of:
    - Rendering of interactive controls
    - Source code generation for UI frameworks
    - Persistent storage of drafts

This package defines FORM STRUCTURE and the edits applied to it.

Collaborators (serialization, templates, tabular import, schema backends)
consume this model; they never edit it directly.
"""

__version__ = "0.1.0"
