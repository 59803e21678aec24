"""Core domain package for wikifeed.

Core contains the channel registry, the edit-line parser, and the event
models without any IRC or file-specific code, keeping the feed logic portable.
"""
