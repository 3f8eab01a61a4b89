"""
relay - Linear issues to git worktrees, in one command
"""

from .__version__ import __version__
from .cli.main import main

__all__ = ["main", "__version__"]
