"""craft — apply a template repository on top of a freshly generated app."""

__version__ = "0.1.0"
