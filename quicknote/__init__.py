"""
Visibility engine and application shell for the QuickNote overlay.
"""

from .activity_tracker import ActivityTracker  # noqa: F401
from .coordinator import VisibilityCoordinator  # noqa: F401
from .debounce import DebouncedWriter  # noqa: F401
from .fade import FadeSequencer  # noqa: F401
from .visibility import VisibilityState  # noqa: F401
