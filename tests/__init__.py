"""Test suite for the formharness regression harness.

This package contains tests for:
- Value serialization, widget lookup and markup scraping
- Submission results and observation matching
- The scenario runner, driven against the in-memory engine in tests/fakes.py
- Phase state machine, events, validation, definitions and settings
"""
