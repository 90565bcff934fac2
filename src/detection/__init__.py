"""
Pothole Monitor - Detection Module

Preprocessing, output parsing and the detector facade.
"""

from .pothole import PotholeDetector
from .preprocess import prepare
from .postprocess import parse, contains_target

__all__ = ['PotholeDetector', 'prepare', 'parse', 'contains_target']
