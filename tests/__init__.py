"""
Test Suite
==========

Test suite matching the html_renderer/ package structure.

Test Categories:
- unit: Unit tests for individual pipeline components
- integration: API contract tests and real-browser lifecycle tests
"""
