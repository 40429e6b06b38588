"""Parsers for version requirements and npm lockfiles."""
