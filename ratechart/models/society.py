from django.db import models


class Society(models.Model):
    '''
    A subscriber organisation which receives rate charts.  Societies are
    managed elsewhere; the rate chart engine only refers to them.
    '''

    name = models.CharField(max_length=255)
    identifier = models.CharField(max_length=64, unique=True)

    class Meta:
        app_label = 'ratechart'
        db_table = 'societies'
        verbose_name_plural = 'Societies'

    def __str__(self):
        return self.identifier + " | " + self.name


class Machine(models.Model):
    '''
    A collection device installed at a society.  Machines poll for the
    active rate chart of their society and report back when they have
    fetched it (see MachineDownloadRecord).
    '''

    machine_id = models.CharField(max_length=64)
    society = models.ForeignKey(Society, related_name='machines',
                                on_delete=models.CASCADE)

    class Meta:
        app_label = 'ratechart'
        db_table = 'machines'
        unique_together = ['society', 'machine_id']

    def __str__(self):
        return self.machine_id + " @ " + self.society.identifier
