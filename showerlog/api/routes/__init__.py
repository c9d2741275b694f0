"""API routes package."""

from showerlog.api.routes import ai, auth, saved_thoughts, thoughts

__all__ = [
    "ai",
    "auth",
    "saved_thoughts",
    "thoughts",
]
