"""Terminal tool for bulk visibility and archive changes to hosted repositories."""

__version__ = "0.1.0"
