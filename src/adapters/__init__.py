"""Adapters that connect the core to IRC and to output files."""
