"""Checks driven by reading source files rather than running a tool."""
