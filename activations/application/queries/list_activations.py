"""
ListActivationsQuery.
"""

from dataclasses import dataclass


@dataclass
class ListActivationsQuery:
    """Query for the activation history of a license."""

    license_key: str
    include_inactive: bool = True
