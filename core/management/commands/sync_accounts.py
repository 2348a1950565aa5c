from django.core.exceptions import ImproperlyConfigured
from django.core.management.base import BaseCommand, CommandError

from core.account_cache import get_account_cache


class Command(BaseCommand):
    help = "Fetch every identity-store account page by page and report the count."

    def add_arguments(self, parser):
        parser.add_argument(
            "--list",
            action="store_true",
            help="Print one line per account (id and email).",
        )

    def handle(self, *args, **options):
        cache = get_account_cache()
        self.stdout.write(self.style.NOTICE(f"Page size: {cache.page_size}"))

        try:
            accounts = cache.refresh()
        except ImproperlyConfigured as e:
            raise CommandError(str(e))

        if options["list"]:
            for account in accounts:
                self.stdout.write(f"{account.id}\t{account.email or '-'}")

        self.stdout.write(self.style.SUCCESS(f"Fetched {len(accounts)} accounts."))
