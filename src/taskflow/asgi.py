"""ASGI entry for serverless hosts: ``taskflow.asgi:app``.

Set ``SCHEDULER_ENABLED=false`` there and drive resets through /api/cron/*.
Missing tables are created when the app starts up.
"""

from config.settings import settings
from taskflow.web.app import create_app

app = create_app(settings)
