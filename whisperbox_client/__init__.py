"""Async client for the Whisperbox backend and its client-side moderation gate."""
