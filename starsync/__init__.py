"""
starsync — Keep a Notion database in step with your GitHub stars.

Each run creates a page for every new star, archives pages whose star was
removed, and refreshes the latest-release and latest-commit dates of the
rest.
"""

__version__ = "0.1.0"
