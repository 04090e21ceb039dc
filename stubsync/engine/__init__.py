"""Stub engine: pure core, document I/O, mutation operations, view state and tool handlers."""
