"""Product Editor: a single-screen form for editing catalogue products."""

__version__ = "1.0.0"
