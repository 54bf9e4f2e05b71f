from dataclasses import dataclass

from django.db import models
from django.utils import timezone

from .society import Society


class Channel(models.TextChoices):
    COW = 'COW', 'Cow'
    BUFFALO = 'BUFFALO', 'Buffalo'
    MIXED = 'MIXED', 'Mixed'

    @classmethod
    def normalise(cls, value):
        '''
        Map a channel name as sent by admins or devices onto a Channel.
        Devices still send the short codes BUF and MIX.

        Returns None for anything unrecognised.
        '''
        if value is None:
            return None
        value = str(value).strip().upper()
        value = {'BUF': cls.BUFFALO, 'MIX': cls.MIXED}.get(value, value)
        if value in cls.values:
            return cls(value)
        return None


class ChartStatus(models.TextChoices):
    ACTIVE = 'active', 'Active'
    INACTIVE = 'inactive', 'Inactive'


class ChartHeader(models.Model):
    '''
    One row per (society, channel) pairing which has a rate chart.

    A header whose shared_chart is null is a *master*: it owns the
    ChartDataRow records of the uploaded table.  Any other header is a
    *shared reference* and reuses the rows of the master it points at.
    A master together with its references forms a chart group; the
    provenance fields (file_name, uploaded_by, uploaded_at, record_count,
    checksum) are copied onto every header of a group.

    Use as_variant() rather than testing shared_chart directly.
    '''

    society = models.ForeignKey(Society, related_name='chart_headers',
                                on_delete=models.CASCADE)
    channel = models.CharField(max_length=16, choices=Channel.choices)

    # PROTECT: a master can't be deleted while references point at it
    shared_chart = models.ForeignKey('self', null=True, blank=True,
                                     default=None,
                                     related_name='shared_references',
                                     on_delete=models.PROTECT)

    status = models.CharField(max_length=16, choices=ChartStatus.choices,
                              default=ChartStatus.ACTIVE)

    file_name = models.CharField(max_length=255)
    uploaded_by = models.CharField(max_length=255)
    uploaded_at = models.DateTimeField(default=timezone.now)
    record_count = models.IntegerField(default=0)
    checksum = models.CharField(max_length=128, null=True, blank=True)

    class Meta:
        app_label = 'ratechart'
        db_table = 'chart_headers'
        verbose_name_plural = 'Chart headers'
        constraints = [
            models.UniqueConstraint(fields=['society', 'channel'],
                                    name='unique_society_channel'),
        ]
        indexes = [
            models.Index(fields=['channel'], name='idx_chart_channel'),
        ]

    def __str__(self):
        return "%s | %s | %s" % (self.file_name, self.channel,
                                 self.society_id)

    @property
    def is_master(self):
        return self.shared_chart_id is None

    @property
    def is_active(self):
        return self.status == ChartStatus.ACTIVE

    @property
    def master_id(self):
        '''
        Id of the header which owns the data rows of this header's group.
        '''
        if self.shared_chart_id is None:
            return self.id
        return self.shared_chart_id

    def as_variant(self):
        if self.shared_chart_id is None:
            return Master(header_id=self.id,
                          society_id=self.society_id,
                          channel=self.channel,
                          record_count=self.record_count)
        return Reference(header_id=self.id,
                         society_id=self.society_id,
                         channel=self.channel,
                         master_id=self.shared_chart_id)


class ChartDataRow(models.Model):
    '''
    One (CLR, FAT, SNF) -> rate entry.  Rows only ever belong to a master
    ChartHeader.
    '''

    chart = models.ForeignKey(ChartHeader, related_name='data_rows',
                              on_delete=models.CASCADE)
    clr = models.DecimalField(max_digits=8, decimal_places=2)
    fat = models.DecimalField(max_digits=8, decimal_places=2)
    snf = models.DecimalField(max_digits=8, decimal_places=2)
    rate = models.DecimalField(max_digits=12, decimal_places=2)

    class Meta:
        app_label = 'ratechart'
        db_table = 'chart_data_rows'
        indexes = [
            models.Index(fields=['clr', 'fat', 'snf'],
                         name='idx_clr_fat_snf'),
        ]

    def __str__(self):
        return "%s: %s/%s/%s -> %s" % (self.chart_id, self.clr, self.fat,
                                       self.snf, self.rate)


@dataclass(frozen=True)
class Master:
    '''A header which physically owns its group's data rows.'''
    header_id: int
    society_id: int
    channel: str
    record_count: int

    @property
    def master_id(self):
        return self.header_id

    def owned_rows(self):
        return ChartDataRow.objects.filter(chart_id=self.header_id)


@dataclass(frozen=True)
class Reference:
    '''A header which reuses the data rows of another (master) header.'''
    header_id: int
    society_id: int
    channel: str
    master_id: int
