"""infraflow — infrastructure topology detection, diffing and layout."""

__version__ = "0.1.0"
