"""Whisperbox anonymous messaging backend."""
