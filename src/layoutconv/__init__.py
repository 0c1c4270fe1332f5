"""layoutconv — spreadsheet/PDF tables to positional or delimited flat files."""

__version__ = "0.1.0"
