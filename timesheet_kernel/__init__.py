"""
Timesheet Kernel - lifecycle core for the timesheet workflow

Shared by the employee and manager views:
- Timesheet record model and status state machine
- Typed exception hierarchy
- Structured JSON logging
- Injectable clock
"""

__version__ = "0.1.0"
