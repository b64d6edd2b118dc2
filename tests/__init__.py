"""
Test Suite

Structure:
- tests/unit/: Tests for individual components (schemas, signing, classification, collection)

HTTP is never touched: responses are mocked on the client session.
Uses pytest with pytest-asyncio for testing async functionality.
"""
