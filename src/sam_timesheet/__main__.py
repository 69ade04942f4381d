from sam_timesheet.cli import run

run()
