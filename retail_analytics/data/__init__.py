"""
Data Generation Module
"""
from .generators import SampleDataGenerator, REGIONS, CATEGORIES

__all__ = [
    "SampleDataGenerator",
    "REGIONS",
    "CATEGORIES",
]
