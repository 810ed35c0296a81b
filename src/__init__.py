"""
Puzzlescribe: Puzzle Page to Markdown Converter

A small utility for turning saved puzzle description pages into the
lightweight markdown files archived next to each day's solution.
"""

__version__ = "1.0"
__author__ = "Puzzlescribe Project"
__description__ = "Puzzle Page to Markdown Converter"
