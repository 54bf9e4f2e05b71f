from django.db import models, migrations
import django.db.models.deletion
import django.utils.timezone


class Migration(migrations.Migration):

    initial = True

    dependencies = [
    ]

    operations = [
        migrations.CreateModel(
            name='Society',
            fields=[
                ('id', models.AutoField(verbose_name='ID', serialize=False, auto_created=True, primary_key=True)),
                ('name', models.CharField(max_length=255)),
                ('identifier', models.CharField(unique=True, max_length=64)),
            ],
            options={
                'db_table': 'societies',
                'verbose_name_plural': 'Societies',
            },
        ),
        migrations.CreateModel(
            name='Machine',
            fields=[
                ('id', models.AutoField(verbose_name='ID', serialize=False, auto_created=True, primary_key=True)),
                ('machine_id', models.CharField(max_length=64)),
                ('society', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='machines', to='ratechart.Society')),
            ],
            options={
                'db_table': 'machines',
                'unique_together': {('society', 'machine_id')},
            },
        ),
        migrations.CreateModel(
            name='ChartHeader',
            fields=[
                ('id', models.AutoField(verbose_name='ID', serialize=False, auto_created=True, primary_key=True)),
                ('channel', models.CharField(choices=[('COW', 'Cow'), ('BUFFALO', 'Buffalo'), ('MIXED', 'Mixed')], max_length=16)),
                ('status', models.CharField(choices=[('active', 'Active'), ('inactive', 'Inactive')], default='active', max_length=16)),
                ('file_name', models.CharField(max_length=255)),
                ('uploaded_by', models.CharField(max_length=255)),
                ('uploaded_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('record_count', models.IntegerField(default=0)),
                ('checksum', models.CharField(blank=True, max_length=128, null=True)),
                ('shared_chart', models.ForeignKey(blank=True, default=None, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='shared_references', to='ratechart.ChartHeader')),
                ('society', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='chart_headers', to='ratechart.Society')),
            ],
            options={
                'db_table': 'chart_headers',
                'verbose_name_plural': 'Chart headers',
            },
        ),
        migrations.AddConstraint(
            model_name='chartheader',
            constraint=models.UniqueConstraint(fields=('society', 'channel'), name='unique_society_channel'),
        ),
        migrations.AddIndex(
            model_name='chartheader',
            index=models.Index(fields=['channel'], name='idx_chart_channel'),
        ),
        migrations.CreateModel(
            name='ChartDataRow',
            fields=[
                ('id', models.AutoField(verbose_name='ID', serialize=False, auto_created=True, primary_key=True)),
                ('clr', models.DecimalField(decimal_places=2, max_digits=8)),
                ('fat', models.DecimalField(decimal_places=2, max_digits=8)),
                ('snf', models.DecimalField(decimal_places=2, max_digits=8)),
                ('rate', models.DecimalField(decimal_places=2, max_digits=12)),
                ('chart', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='data_rows', to='ratechart.ChartHeader')),
            ],
            options={
                'db_table': 'chart_data_rows',
            },
        ),
        migrations.AddIndex(
            model_name='chartdatarow',
            index=models.Index(fields=['clr', 'fat', 'snf'], name='idx_clr_fat_snf'),
        ),
        migrations.CreateModel(
            name='MachineDownloadRecord',
            fields=[
                ('id', models.AutoField(verbose_name='ID', serialize=False, auto_created=True, primary_key=True)),
                ('downloaded', models.BooleanField(default=False)),
                ('downloaded_at', models.DateTimeField(blank=True, default=None, null=True)),
                ('ip_address', models.CharField(blank=True, max_length=64, null=True)),
                ('chart', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='download_records', to='ratechart.ChartHeader')),
                ('machine', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='download_records', to='ratechart.Machine')),
            ],
            options={
                'db_table': 'machine_download_records',
                'unique_together': {('machine', 'chart')},
            },
        ),
    ]
