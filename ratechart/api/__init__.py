# pylint: disable=unused-import
# flake8: noqa

from .ratechart import RateChartAppResource
from .download import (
    DownloadStatusAppResource,
    DeviceDownloadAppResource
)
