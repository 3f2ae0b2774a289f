"""
Tests for Execute Now eligibility.

This package contains tests for:
- Object catalog loading and resolution
- Eligibility decisions per console surface
- Request service, persistence and CLI
"""
