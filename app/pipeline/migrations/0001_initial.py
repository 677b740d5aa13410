# Generated migration

from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion
import django.utils.timezone


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('ingest', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='ExcelData',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('sheet_name', models.CharField(max_length=255)),
                ('columna1', models.CharField(blank=True, default='', max_length=500)),
                ('columna2', models.CharField(blank=True, default='', max_length=500)),
                ('columna3', models.IntegerField(blank=True, null=True)),
                ('row_index', models.PositiveIntegerField()),
                ('mes', models.DateField(help_text='Effective month (first day) or parsed date')),
                ('mes_texto', models.CharField(blank=True, max_length=255, null=True)),
                ('almacen', models.CharField(blank=True, max_length=255, null=True)),
                ('monitorista_reporta', models.CharField(blank=True, max_length=255, null=True)),
                ('coordinador_turno', models.CharField(blank=True, max_length=255, null=True)),
                ('fecha_envio', models.CharField(blank=True, help_text='yyyy-mm-dd when parseable, raw text otherwise', max_length=255, null=True)),
                ('incidence_metadata', models.JSONField(blank=True, null=True)),
                ('fecha_creacion', models.DateTimeField(db_index=True, default=django.utils.timezone.now)),
                ('upload', models.ForeignKey(blank=True, db_constraint=False, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='excel_data', to='ingest.excelupload')),
                ('uploaded_by', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='excel_data', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'excel_data',
                'ordering': ['-fecha_creacion'],
            },
        ),
        migrations.AddIndex(
            model_name='exceldata',
            index=models.Index(fields=['upload', 'row_index'], name='excel_data_upload_row_idx'),
        ),
        migrations.AddIndex(
            model_name='exceldata',
            index=models.Index(fields=['mes'], name='excel_data_mes_idx'),
        ),
    ]
