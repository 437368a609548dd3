"""hexstream — side-by-side hexadecimal and character dump of binary files."""

__version__ = "0.3.0"
