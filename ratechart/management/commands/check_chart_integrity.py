from django.core.management.base import BaseCommand
from django.db.models import Count

from ...engine import AssignmentEngine
from ...models import ChartHeader


class Command(BaseCommand):
    help = ('Reports rate charts which break the master/shared invariants: '
            'masters without data rows and references to references')

    def add_arguments(self, parser):
        parser.add_argument(
            '--delete-empty', action='store_true', default=False,
            help='Delete the groups of masters which have no data rows')

    def handle(self, *args, **options):
        problems = 0

        empty = ChartHeader.objects.filter(
            shared_chart__isnull=True, record_count__gt=0
        ).annotate(rows=Count('data_rows')).filter(rows=0)
        for chart in empty.order_by('id'):
            problems += 1
            self.stdout.write(
                "EMPTY %d %s %s society=%d\n" % (
                    chart.id, chart.channel, chart.file_name,
                    chart.society_id))

        chained = ChartHeader.objects.filter(
            shared_chart__isnull=False,
            shared_chart__shared_chart__isnull=False)
        for chart in chained.order_by('id'):
            problems += 1
            self.stdout.write(
                "CHAINED %d -> %d society=%d\n" % (
                    chart.id, chart.shared_chart_id, chart.society_id))

        if options['delete_empty']:
            engine = AssignmentEngine()
            for chart in empty.order_by('id'):
                count = engine.delete_group(chart.id)
                self.stdout.write(
                    "DELETED %d (%d headers)\n" % (chart.id, count))

        if problems == 0:
            self.stdout.write("OK\n")
