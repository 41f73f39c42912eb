import logging
import time

from django.conf import settings
from django.core.management.base import BaseCommand, CommandError
from django.db import connections
from django.db.utils import OperationalError

log = logging.getLogger(__name__)


class Command(BaseCommand):
    help = "Block until the default database accepts connections, retrying on a fixed delay."

    def add_arguments(self, parser):
        parser.add_argument(
            "--delay",
            type=float,
            default=None,
            help="Seconds between attempts (default: DB_CONNECT_RETRY_SECONDS)",
        )
        parser.add_argument(
            "--max-attempts",
            type=int,
            default=0,
            help="Give up after this many attempts; 0 retries forever",
        )
        parser.add_argument("--database", default="default")

    def handle(self, *args, **opts):
        delay = opts["delay"]
        if delay is None:
            delay = float(getattr(settings, "DB_CONNECT_RETRY_SECONDS", 10))
        max_attempts = opts["max_attempts"]
        conn = connections[opts["database"]]
        attempt = 0
        while True:
            attempt += 1
            try:
                conn.ensure_connection()
            except OperationalError as e:
                log.warning("Database connection failed (attempt %s): %s", attempt, e)
                if max_attempts and attempt >= max_attempts:
                    raise CommandError(f"database unavailable after {attempt} attempts")
                self.stdout.write(self.style.WARNING(f"Database unavailable, retrying in {delay:g}s..."))
                time.sleep(delay)
                continue
            self.stdout.write(self.style.SUCCESS(f"Database available after {attempt} attempt(s)"))
            return
