"""Shared utilities: audio decoding, cancellation, constants and logging."""
