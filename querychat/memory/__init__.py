"""Conversation history persistence (MongoDB-backed turn log)."""
