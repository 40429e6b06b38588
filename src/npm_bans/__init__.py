"""npm-bans core package.

Validates deny/allow/skip policies for npm dependency graphs and explains,
as an inverted tree, how any package is pulled into a project.
"""

__all__ = [
    "bans",
    "diag",
    "graph",
    "grapher",
    "spans",
]
