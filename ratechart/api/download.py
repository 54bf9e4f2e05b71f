import logging

from django.http import HttpResponse, JsonResponse
from django.urls import re_path
from ipware import get_client_ip
from tastypie.authentication import Authentication

from ..downloads import DownloadStatusTracker
from ..exceptions import NotFoundError, RateChartError, ValidationError
from ..models import MachineDownloadRecord

from .auth import ChartAuthorization
from .base import RateChartModelResource


logger = logging.getLogger(__name__)

NOT_FOUND = "Price chart not found."


class DownloadStatusAppResource(RateChartModelResource):
    """
    Download status of chart groups per machine, and resetting it
    """

    class Meta(RateChartModelResource.Meta):
        resource_name = "ratechart_download"
        allowed_methods = ["get"]
        authorization = ChartAuthorization()
        queryset = MachineDownloadRecord.objects.all()
        filtering = {
            "downloaded": ("exact", ),
        }

    def prepend_urls(self):
        return [
            re_path(
                r"^(?P<resource_name>%s)/reset/$" % self._meta.resource_name,
                self.wrap_view("reset_download"),
                name="api_ratechart_reset_download"
            ),
            re_path(
                r"^(?P<resource_name>%s)/(?P<chart_id>\d+)/$" % self._meta.resource_name,
                self.wrap_view("get_download_status"),
                name="api_ratechart_download_status"
            ),
        ]

    def get_download_status(self, request, **kwargs):
        self.method_check(request, allowed=["get"])
        if not self.check_admin(request):
            return self.handle_error("Admin access required", status=403)

        try:
            status = DownloadStatusTracker().get_status(kwargs["chart_id"])
        except RateChartError as err:
            return self.handle_engine_error(err)

        data = {"success": True}
        data.update(status)
        return JsonResponse(data, status=200)

    def reset_download(self, request, **kwargs):
        """
        Let the selected machines download the given charts again
        """
        self.method_check(request, allowed=["post"])
        if not self.check_admin(request):
            return self.handle_error("Admin access required", status=403)

        try:
            body = self.request_data(request)
            count = DownloadStatusTracker().reset_download(
                body.get("chartIds", None), body.get("machineIds", None))
        except RateChartError as err:
            return self.handle_engine_error(err)

        return JsonResponse({"success": True, "resetCount": count},
                            status=200)


class DeviceDownloadAppResource(RateChartModelResource):
    """
    Rate chart download for collection machines.

    InputString format: societyId|machineType|version|machineId|channel
    e.g. S-101|LSE-SVWTBQ-12AH|LE3.36|Mm00102|COW
    """

    class Meta(RateChartModelResource.Meta):
        resource_name = "ratechart_device"
        allowed_methods = ["get", "post"]
        authentication = Authentication()
        authorization = ChartAuthorization()
        queryset = MachineDownloadRecord.objects.none()

    def prepend_urls(self):
        return [
            re_path(
                r"^(?P<resource_name>%s)/download/$" % self._meta.resource_name,
                self.wrap_view("download_chart"),
                name="api_ratechart_device_download"
            ),
        ]

    def download_chart(self, request, **kwargs):
        self.method_check(request, allowed=["get", "post"])

        input_string = request.GET.get("InputString", None)
        if input_string is None:
            input_string = request.POST.get("InputString", "")
        input_string = input_string.replace("\r", "").replace("\n", "")
        parts = input_string.split("|")
        if len(parts) != 5:
            logger.warning("Invalid InputString %r" % input_string)
            return HttpResponse(NOT_FOUND, status=400,
                                content_type="text/plain")
        society_id, machine_type, version, machine_id, channel = \
            [p.strip() for p in parts]

        ip, _ = get_client_ip(request)
        try:
            content = DownloadStatusTracker().fetch_for_machine(
                society_id, machine_id, channel, ip_address=ip)
        except (NotFoundError, ValidationError) as err:
            logger.info("No chart for machine %s (%s %s) of %s: %s"
                        % (machine_id, machine_type, version, society_id,
                           err))
            return HttpResponse(NOT_FOUND, status=404,
                                content_type="text/plain")
        except RateChartError as err:
            logger.error("Chart download for machine %s failed: %s"
                         % (machine_id, err))
            return HttpResponse(NOT_FOUND, status=500,
                                content_type="text/plain")

        response = HttpResponse(content, status=200, content_type="text/csv")
        response["Content-Disposition"] = \
            'attachment; filename="PriceChart.csv"'
        response["Cache-Control"] = "no-cache"
        return response
