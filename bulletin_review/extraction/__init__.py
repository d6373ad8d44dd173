"""Extraction package.

Everything that touches the raw AI output before it becomes a Document:
permissive parsing (``schema``), subject grouping (``sorting``) and the
rule/heuristic pass (``validator``).
"""
