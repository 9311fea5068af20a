"""
Test suite for the PLU list service.

Run all tests: pytest
Run unit tests only: pytest tests/unit/
Run specific file: pytest tests/unit/test_publish_service.py -v
"""
