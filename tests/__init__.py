"""
Test suite for liquidity rounds

Contains:
- tests/fakes.py       : In-memory strategy, custody and unit vault
- tests/unit/          : Unit tests for individual modules and the settlement state machine
"""
