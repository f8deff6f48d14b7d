"""
Core of a KSON chart editor: chart data model, KSH importer, undo/redo stack and cursor tools.
"""
__version__ = "0.1.0"
