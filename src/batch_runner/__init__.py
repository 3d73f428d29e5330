"""Parallel test runner that gives every batch of test files its own PostgreSQL container."""

__version__ = "0.1.0"
