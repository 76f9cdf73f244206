"""Interactive git branch triage.

Features:
- Walk local and remote branches, oldest last commit first
- Keep, delete or quit with a single keystroke
- Protected branches (main, master, default) are never offered
- Remote branches are never deleted
- Prints the command that restores a deleted branch
"""

__version__ = "0.1.0"
