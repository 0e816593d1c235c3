"""taskq - find tasks, projects and comments in a Todoist account."""

__version__ = "0.1.0"
