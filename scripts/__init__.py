"""
Operator scripts for inspecting and repairing the Takt database.

Run from the repository root as ``python -m scripts.<name> --help``. Scripts
that write are dry-run unless ``--apply`` is given.
"""
