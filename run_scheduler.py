"""
Main Execution Script for the Therapy Session Scheduler.
Loads a clinic fixture, runs one bulk scheduling request and prints the report.
"""

import os
import sys
import logging
import json
from typing import Optional

# Add current directory to path so imports work
sys.path.append(os.path.dirname(os.path.abspath(__file__)))

from models import BookedSession, BulkScheduleRequest, ServiceAssignment, WeeklyScheduleEntry
from scheduler.config import EngineConfig
from scheduler.errors import EngineError
from scheduler.service import SchedulingService
from scheduler.stores import (
    CachedScheduleStore,
    InMemoryAssignmentStore,
    InMemoryScheduleStore,
    InMemorySessionStore,
)

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if os.getenv("SCHEDULER_DEBUG") else logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[logging.StreamHandler()]
)
logger = logging.getLogger("Main")

# --- CONFIGURATION ---
FIXTURE_FILENAME = os.getenv("SCHEDULER_FIXTURE", "sample_clinic.json")
EXPORT_FILENAME = os.getenv("SCHEDULER_EXPORT", "bulk_result.json")
# ---------------------


def load_clinic(filename: str):
    """
    Helper to load the JSON fixture and reconstruct Pydantic objects.
    """
    try:
        with open(filename, 'r') as f:
            data = json.load(f)
    except (FileNotFoundError, json.JSONDecodeError) as e:
        logger.error(f"❌ Fixture {filename} not found or invalid: {e}")
        return None, None

    logger.info(f"📂 Loading clinic fixture from {filename}...")

    # Re-hydrate Pydantic models from the JSON dicts
    schedules = [WeeklyScheduleEntry.model_validate(item) for item in data.get('schedules', [])]
    sessions = [BookedSession.model_validate(item) for item in data.get('sessions', [])]
    assignments = [ServiceAssignment.model_validate(item) for item in data.get('assignments', [])]
    request = BulkScheduleRequest.model_validate(data['bulk_request'])

    service = SchedulingService(
        schedules=CachedScheduleStore(InMemoryScheduleStore(schedules)),
        sessions=InMemorySessionStore(sessions),
        assignments=InMemoryAssignmentStore(assignments),
        config=EngineConfig()
    )

    logger.info(
        f"✅ Fixture loaded: {len(schedules)} schedule days, "
        f"{len(sessions)} existing sessions, {len(assignments)} assignments."
    )
    return service, request


def export_result(result, filename: str) -> None:
    """Serializes the bulk result for whoever renders the calendar."""
    logger.info(f"💾 Exporting bulk result to {filename}...")

    data = result.model_dump(mode='json')
    data["message"] = result.message

    # Sessions grouped by date
    calendar = {}
    for session in result.created_sessions:
        calendar.setdefault(session.scheduled_date.isoformat(), []).append(
            f"{session.scheduled_time} ({session.duration_minutes} min)"
        )
    data["calendar"] = calendar

    with open(filename, 'w') as f:
        json.dump(data, f, indent=2)
    logger.info("✅ Bulk result exported.")


def main(fixture: Optional[str] = None) -> int:
    logger.info("🚀 Starting Therapy Session Scheduler demo run...")

    service, request = load_clinic(fixture or FIXTURE_FILENAME)
    if service is None:
        return 1

    try:
        result = service.schedule_bulk(request)
    except EngineError as e:
        logger.error(f"❌ Bulk scheduling refused [{e.code}]: {e}")
        return 1

    state = service.last_run
    stats = state.get_statistics()

    print("\n" + "=" * 50)
    print("📊 BULK SCHEDULING REPORT")
    print("=" * 50)
    print(result.message)
    print(stats)

    if result.errors:
        print("\n🔍 CONFLICT ANALYSIS")
        for group in state.get_failure_report():
            print(f"❌ [{group['reason']}] x{group['count']}: {', '.join(group['slots'])}")
            print(f"   Latest: {group['latest_message']}")

        for error in result.errors:
            if error.suggestions:
                alternatives = ", ".join(f"{s.date.isoformat()} {s.time}" for s in error.suggestions)
                print(f"💡 {error.date.isoformat()} {error.time} -> {alternatives}")

    if result.budget_exhausted:
        print(f"\n⚠️ Session budget exhausted, {result.skipped_count} candidates not evaluated")

    export_result(result, EXPORT_FILENAME)
    print("\n✅ Demo run complete.")
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv[1] if len(sys.argv) > 1 else None))
