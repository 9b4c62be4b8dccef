"""Git access for reading history and performing release steps."""

from relman.git.base import CommitStore
from relman.git.client import GitClient
from relman.git.models import Commit

__all__ = [
    "Commit",
    "CommitStore",
    "GitClient",
]
