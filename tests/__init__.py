"""
Test suite for the card catalog sync backend.

Run all tests: pytest
Run unit tests only: pytest tests/unit/
Run specific file: pytest tests/unit/test_batch_processor_service.py -v
"""
