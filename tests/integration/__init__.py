# tests/integration/ - End-to-end storage group scenarios
"""
Integration tests for MediaDrive storage group behavior.

These tests drive the real components together (enumerator over a fixture
inventory, wizard, store on a temp file) rather than single units.
"""
