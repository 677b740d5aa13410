from pathlib import Path

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand, CommandError
from ingest.excel import IngestionFailed, UploadRejected, ingest_workbook


class Command(BaseCommand):
    help = 'Ingest an Excel workbook from disk as detecciones or revisiones'

    def add_arguments(self, parser):
        parser.add_argument('--tipo', type=str, required=True, help='detecciones or revisiones')
        parser.add_argument('--file', type=str, required=True, help='Path to the .xlsx file')
        parser.add_argument('--user', type=str, required=True, help='Username recorded as uploader')

    def handle(self, *args, **options):
        file_path = Path(options['file'])
        username = options['user']

        User = get_user_model()
        try:
            user = User.objects.get_by_natural_key(username)
        except User.DoesNotExist:
            raise CommandError(f'User not found: {username}')

        try:
            content = file_path.read_bytes()
        except FileNotFoundError:
            raise CommandError(f'File not found: {file_path}')

        self.stdout.write(f'Ingesting {file_path} as {options["tipo"]}...')

        try:
            result = ingest_workbook(
                content=content,
                file_name=file_path.name,
                upload_type=options['tipo'],
                user=user,
            )
        except UploadRejected as e:
            raise CommandError(e.message)
        except IngestionFailed as e:
            raise CommandError(e.detail)

        self.stdout.write(self.style.SUCCESS(
            f'{result.upload_type}: upload {result.upload_id}, {result.total_rows} rows'
        ))
