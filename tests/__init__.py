"""
Tests for tinydqn
=================

Run all tests:
    pytest tests/

Skip the long-running ones:
    pytest tests/ -m "not slow"
"""
