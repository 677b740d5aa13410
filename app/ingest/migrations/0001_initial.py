# Generated migration

from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion
import django.utils.timezone


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='ExcelUpload',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('upload_type', models.CharField(choices=[('detecciones', 'Detecciones'), ('revisiones', 'Revisiones')], db_index=True, max_length=50)),
                ('file_name', models.CharField(max_length=255)),
                ('sheet_name', models.CharField(blank=True, max_length=255)),
                ('headers', models.JSONField(default=list, help_text='Ordered header texts of the selected sheet')),
                ('total_rows', models.PositiveIntegerField(default=0)),
                ('uploaded_at', models.DateTimeField(db_index=True, default=django.utils.timezone.now)),
                ('uploaded_by', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='excel_uploads', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'excel_upload',
                'ordering': ['-uploaded_at'],
            },
        ),
        migrations.CreateModel(
            name='Deteccion',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('row_index', models.PositiveIntegerField(help_text='1-based row number within the sheet')),
                ('data', models.JSONField(help_text='Raw row dict')),
                ('created_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('upload', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='detecciones', to='ingest.excelupload')),
            ],
            options={
                'db_table': 'deteccion',
                'ordering': ['row_index'],
                'abstract': False,
            },
        ),
        migrations.CreateModel(
            name='Revision',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('row_index', models.PositiveIntegerField(help_text='1-based row number within the sheet')),
                ('data', models.JSONField(help_text='Raw row dict')),
                ('created_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('upload', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='revisiones', to='ingest.excelupload')),
            ],
            options={
                'db_table': 'revision',
                'ordering': ['row_index'],
                'abstract': False,
            },
        ),
        migrations.AddConstraint(
            model_name='deteccion',
            constraint=models.UniqueConstraint(fields=('upload', 'row_index'), name='unique_deteccion_row'),
        ),
        migrations.AddConstraint(
            model_name='revision',
            constraint=models.UniqueConstraint(fields=('upload', 'row_index'), name='unique_revision_row'),
        ),
    ]
