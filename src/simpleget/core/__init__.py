"""Core pipeline: descriptor building, transport selection, redirects, decoding."""
