"""Relational database building blocks: values, expressions, statement splitting, catalog, printing, REPL and server."""

__version__ = "0.4.0"