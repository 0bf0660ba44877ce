"""
Roadmap Consequence Engine.

Pure, in-process analysis of roadmap schedules: dependency violations,
constraint violations, resource over-allocation and cascading date shifts.
"""

__version__ = "1.0.0"
