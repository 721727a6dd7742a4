"""Unit tests for the database layer in takt/core/database.

Entity helpers are tested on plain instances; repositories run against
the in-memory SQLite session from the unit test conftest, or mocks.
"""
