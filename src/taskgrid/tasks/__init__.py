"""
Task subsystem.

Components:
- task_models.py: data structures (Task, DefaultTemplate, Workspace) and date helpers
- task_store.py: JSON-backed local stores (tasks, templates, preferences)
- task_api.py: user operations (add / toggle / edit / delete / clear)
- defaults.py: recurring weekly templates -> dated task instances
- calendar.py: per-date counts and heat levels
"""
