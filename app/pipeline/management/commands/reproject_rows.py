from django.core.management.base import BaseCommand, CommandError
from django.db import transaction
from ingest.models import ExcelUpload, row_model_for
from pipeline.models import ExcelData
from pipeline.stage import build_excel_data


class Command(BaseCommand):
    help = 'Rebuild ExcelData rows from the stored raw rows'

    def add_arguments(self, parser):
        parser.add_argument('--upload', type=int, help='Only rebuild this upload id')

    def handle(self, *args, **options):
        uploads = ExcelUpload.objects.select_related('uploaded_by').order_by('id')
        if options.get('upload'):
            uploads = uploads.filter(pk=options['upload'])
            if not uploads.exists():
                raise CommandError(f'Upload not found: {options["upload"]}')

        self.stdout.write(self.style.WARNING('=== Rebuilding ExcelData ==='))

        total = 0
        for upload in uploads:
            rows = row_model_for(upload.upload_type).objects.filter(upload=upload).order_by('row_index')
            with transaction.atomic():
                ExcelData.objects.filter(upload_id=upload.pk).delete()
                created = ExcelData.objects.bulk_create([
                    build_excel_data(row.data, upload.headers, upload, row.row_index)
                    for row in rows
                ])
            total += len(created)
            self.stdout.write(f'  Upload {upload.pk} ({upload.file_name}): {len(created)} rows')

        self.stdout.write(self.style.SUCCESS(f'=== Rebuilt {total} ExcelData rows ==='))
