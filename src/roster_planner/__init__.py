"""
Monthly Duty Roster Planner

A desktop application that assigns early, mid and late duty slots to a small
team over a calendar month, balancing each employee's workload against an
individually computed quota.
"""

__version__ = "1.0.0"
__author__ = "Roster Planner Team"
