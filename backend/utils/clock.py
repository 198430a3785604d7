import os
from datetime import datetime, date

import pytz
from dotenv import load_dotenv

load_dotenv()

APP_TIMEZONE = os.getenv("APP_TIMEZONE", "Asia/Kabul")


def now() -> datetime:
    """Timezone-aware current time in the configured zone."""
    return datetime.now(pytz.timezone(APP_TIMEZONE))


def today() -> date:
    return now().date()
