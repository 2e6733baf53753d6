"""
IP Monitor test suite.

Test Organization:
- unit/: record store, measurement sources, collector, pagination, config
- integration/: check scheduler against a real store, HTTP history view

To run all tests:
    python -m pytest tests/
"""
