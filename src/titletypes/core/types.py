"""Core type definitions."""

from enum import StrEnum
from typing import NewType

# URL path for routing (e.g., "/topics")
URLPath = NewType("URLPath", str)


class ExpansionPolicy(StrEnum):
    """Initial disclosure state of a taxonomy page."""

    COLLAPSED = "collapsed"
    EXPANDED = "expanded"
    FIRST_TOPIC = "first-topic"
