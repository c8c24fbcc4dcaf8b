import json
import logging
import signal

from django.core.management.base import BaseCommand

from dashboard.services.health import get_monitor

logger = logging.getLogger(__name__)


class Command(BaseCommand):
    help = "Run the service health monitor in the foreground (or a single probe cycle with --once)."

    def add_arguments(self, parser):
        parser.add_argument('--once', action='store_true', help='Run one probe cycle, print the snapshot and exit.')

    def handle(self, *args, **options):
        monitor = get_monitor()
        if options['once']:
            snapshot = monitor.run_cycle()
            if snapshot is None:
                snapshot = monitor.snapshot()
            self.stdout.write(json.dumps(snapshot.to_dict(), indent=2))
            style = self.style.SUCCESS if snapshot.overall.value == 'operational' else self.style.WARNING
            self.stdout.write(style(f"overall={snapshot.overall.value} health={snapshot.health_percentage}%"))
            return

        stopping = {'flag': False}

        def _stop(signum, frame):
            stopping['flag'] = True
            monitor.stop()

        signal.signal(signal.SIGINT, _stop)
        signal.signal(signal.SIGTERM, _stop)
        monitor.start()
        self.stdout.write(self.style.SUCCESS(f"Health monitor running every {monitor.interval}s; Ctrl+C to stop"))
        while not stopping['flag'] and monitor.running:
            signal.pause()
        monitor.stop()
        self.stdout.write("Health monitor stopped")
