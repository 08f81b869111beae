import pytz
from datetime import datetime

from planipeda.config import Config

def get_local_time():
    """
    Returns the current time in the configured TIMEZONE as a naive datetime.
    """
    return datetime.now(pytz.timezone(Config.TIMEZONE)).replace(tzinfo=None)
