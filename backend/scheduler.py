# file: backend/scheduler.py

import threading
import schedule
import logging
import time
from backend import config
from backend.database import get_readings
from backend.models import LoadResult
from backend.store import reading_store


def refresh_store() -> LoadResult :
    """Reload the reading store wholesale from InfluxDB."""
    readings = get_readings()
    result = reading_store.load(readings)
    logging.info(f"Reading store refreshed: {result.loaded} loaded, {result.dropped} dropped")
    return result


def run_schedule() -> None :
    """Schedule periodic refreshes of the reading store."""

    def job() :
        try :
            refresh_store()
        except Exception as e :
            logging.error(f"Scheduled refresh failed: {e}")

    schedule.every(config.REFRESH_INTERVAL_MINUTES).minutes.do(job)

    def run_continuously() :
        while True :
            schedule.run_pending()
            time.sleep(30)

    thread = threading.Thread(target = run_continuously, daemon = True)
    thread.start()
    logging.info(f"Scheduler started, refreshing every {config.REFRESH_INTERVAL_MINUTES} minutes")
