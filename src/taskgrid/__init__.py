"""Date-scoped tasks in two workspaces, local-first with best-effort remote sync."""

__version__ = "0.1.0"
