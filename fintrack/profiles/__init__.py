"""
Profiles Package

Decides which namespace (real or foreign) the app is showing and seeds
the foreign one with demo data on first use.
"""

from fintrack.profiles.resolver import ProfileResolver
from fintrack.profiles.seed import DemoDataset, build_demo_dataset

__all__ = [
    "ProfileResolver",
    "DemoDataset",
    "build_demo_dataset",
]
