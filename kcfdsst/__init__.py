"""KCF translation tracking with DSST scale estimation: re-export high-level API."""
from .config import TrackerConfig                                  # noqa: F401
from .geometry import BoundingBox, InvalidBoundingBoxError         # noqa: F401
from .tracker import KCFTracker                                    # noqa: F401

__version__ = "0.1.0"
