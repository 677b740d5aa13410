from django.contrib.auth.models import Group
from django.core.management.base import BaseCommand
from ingest.auth import ALL_ROLES


class Command(BaseCommand):
    help = 'Create the role groups used by the API'

    def handle(self, *args, **options):
        created = 0
        for name in ALL_ROLES:
            _group, was_created = Group.objects.get_or_create(name=name)
            if was_created:
                created += 1

        self.stdout.write(self.style.SUCCESS(
            f'Roles: {created} created, {len(ALL_ROLES) - created} already present'
        ))
