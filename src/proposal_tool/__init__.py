"""
Proposal Tool Package

A sales configuration system for homebuilder proposals.
Groups upgrade options Category → Location → Parent Selection, enforces
single-choice selection, and prices proposals for summary and export.
"""

__version__ = "1.0.0"
