"""Tests for the execute now package."""
