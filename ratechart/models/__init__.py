# pylint: disable=unused-import
# flake8: noqa

from .society import Society, Machine
from .ratechart import (
    Channel,
    ChartStatus,
    ChartHeader,
    ChartDataRow,
    Master,
    Reference
)
from .download import MachineDownloadRecord
