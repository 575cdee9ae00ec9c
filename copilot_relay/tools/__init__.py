"""Outbound API tools."""
