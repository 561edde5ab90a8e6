"""Takeoff file reading (CSV text, Excel conversion)."""
