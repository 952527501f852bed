"""
Print billing status for every active member of active groups.
Run: python manage.py billing_report [group_id] [--as-of 2026-03-01T12:00] [--workers 8] [--generate-pending]
"""
from django.conf import settings
from django.core.management.base import BaseCommand, CommandError
from django.utils import timezone

from groups.models import Group
from billing.errors import OrderingError
from billing.services.loaders import build_roster_inputs, parse_as_of
from billing.services.pending import generate_pending_payments_for_group
from billing.services.roster import compute_roster, summarize_group


class Command(BaseCommand):
    help = "Compute billing status per student and group; optionally open pending payments."

    def add_arguments(self, parser):
        parser.add_argument("group_id", nargs="?", type=int, help="Group id (optional, default: all active groups)")
        parser.add_argument("--as-of", dest="as_of", help="Evaluate at this ISO datetime instead of now")
        parser.add_argument("--workers", type=int, default=None, help="Worker threads for the roster computation")
        parser.add_argument("--generate-pending", action="store_true", help="Open pending payments for owing students")

    def handle(self, *args, **options):
        try:
            now = parse_as_of(options.get("as_of")) or timezone.now()
        except OrderingError:
            raise CommandError(f"Invalid --as-of value: {options['as_of']}") from None
        workers = options.get("workers") or getattr(settings, "BILLING_ROSTER_WORKERS", None)

        groups = Group.objects.filter(is_active=True, deleted_at__isnull=True).order_by("id")
        if options.get("group_id"):
            groups = groups.filter(id=options["group_id"])
            if not groups.exists():
                raise CommandError(f"Group id={options['group_id']} not found or inactive")

        for group in groups:
            self.stdout.write(self.style.MIGRATE_HEADING(f"Group {group.id} {group.name} (as of {now.isoformat()})"))
            if options["generate_pending"]:
                created, entries = generate_pending_payments_for_group(group, now=now, max_workers=workers)
            else:
                created = []
                entries = compute_roster(build_roster_inputs(group, now=now), max_workers=workers)

            for entry in entries:
                if not entry.ok:
                    self.stdout.write(self.style.ERROR(
                        f"  student={entry.student_id} {entry.student_name}: UNKNOWN ({entry.error.code}: {entry.error})"
                    ))
                    continue
                s = entry.status
                due = s.due_date.isoformat() if s.due_date else "-"
                line = (
                    f"  student={entry.student_id} {entry.student_name}: {s.status} "
                    f"sessions={s.countable_sessions_in_cycle}/{s.sessions_per_cycle} "
                    f"cycles_unpaid={s.cycles_unpaid} due={s.total_due} due_date={due}"
                )
                self.stdout.write(self.style.WARNING(line) if s.is_owing else line)

            summary = summarize_group(group.id, entries, group_name=group.name)
            self.stdout.write(
                f"  total={summary.total_students} unknown={summary.unknown_count} "
                f"debt={summary.total_due} overdue={summary.overdue_amount} "
                f"revenue={summary.total_revenue} collected={summary.collection_rate}%"
            )
            if options["generate_pending"]:
                self.stdout.write(self.style.SUCCESS(f"  pending payments generated: {len(created)}"))
