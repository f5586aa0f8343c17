"""Canned Dify payloads for tests."""
