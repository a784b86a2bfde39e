"""Personal bookmark dashboard: categories of cards, drag ordering, admin session."""

from .dashboard import Dashboard
from .models import Bookmark, Category, Dataset
from .store import DatasetStore
from .visibility import Capability

__version__ = "0.1.0"

__all__ = ["Bookmark", "Capability", "Category", "Dashboard", "Dataset", "DatasetStore"]
