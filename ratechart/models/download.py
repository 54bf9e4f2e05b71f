from django.db import models

from .society import Machine
from .ratechart import ChartHeader


class MachineDownloadRecord(models.Model):
    """
    Whether a machine has fetched the current version of a master chart
    """

    machine = models.ForeignKey(Machine, related_name='download_records',
                                on_delete=models.CASCADE)
    chart = models.ForeignKey(ChartHeader, related_name='download_records',
                              on_delete=models.CASCADE)
    downloaded = models.BooleanField(default=False)
    downloaded_at = models.DateTimeField(null=True, blank=True, default=None)

    # Populated from request.META by the device fetch endpoint
    ip_address = models.CharField(max_length=64, null=True, blank=True)

    class Meta:
        app_label = 'ratechart'
        db_table = 'machine_download_records'
        unique_together = ['machine', 'chart']

    def __str__(self):
        return "%s:%s:%s" % (self.machine_id, self.chart_id,
                             "downloaded" if self.downloaded else "pending")
