"""
Tests for toolkit.

- test_validators.py: Phone number and PIN validator tests

Usage:
    pytest toolkit/tests/
"""
