"""
Session Scheduling Engine for the Therapy Session Scheduler.

Submodules are imported directly (``from scheduler.service import SchedulingService``)
so that ``models`` can depend on the interval utility without import cycles.
"""
