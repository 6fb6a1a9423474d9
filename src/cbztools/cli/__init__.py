"""
Typer command-line interface. Each tool is a sub-command of ``cbztools``
and also a standalone console script.
"""
