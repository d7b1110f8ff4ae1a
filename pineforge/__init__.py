"""pineforge — response orchestration for sandboxed builder projects."""

__version__ = "0.1.0"
