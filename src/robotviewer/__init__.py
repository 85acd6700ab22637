"""Interactive URDF robot viewer built on PySide6 and PyVista."""

__version__ = "0.1.0"
