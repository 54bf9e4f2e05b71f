from django.apps import AppConfig


class RateChartConfig(AppConfig):
    name = 'ratechart'
    verbose_name = 'Rate Charts'
    default_auto_field = 'django.db.models.AutoField'
