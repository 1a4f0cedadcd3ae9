"""
Timesheet kernel domain layer -- pure value objects, zero I/O.

Modules:
    clock      -- injectable time source for submission timestamps
    timesheet  -- TimesheetRecord, TimesheetStatus, TimesheetDraft, option sets
    viewer     -- viewer identity and list-view configuration
"""
