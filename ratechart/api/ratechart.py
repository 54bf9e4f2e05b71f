import logging

from django.http import JsonResponse
from django.urls import re_path
from tastypie import fields

from ..engine import AssignmentEngine
from ..exceptions import RateChartError
from ..models import ChartHeader

from .auth import ChartAuthorization
from .base import RateChartModelResource


logger = logging.getLogger(__name__)


def as_bool(value):
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "on")
    return bool(value)


class RateChartAppResource(RateChartModelResource):
    """
    Read access to chart headers, plus the rate chart operations:
    upload, assign, remove_society, toggle_status, delete_group, data and
    groups.
    """
    society_id = fields.IntegerField(attribute="society_id")
    shared_chart_id = fields.IntegerField(attribute="shared_chart_id",
                                          null=True)
    master_id = fields.IntegerField(attribute="master_id", readonly=True)

    class Meta(RateChartModelResource.Meta):
        object_class = ChartHeader
        resource_name = "ratechart"
        allowed_methods = ["get"]
        authorization = ChartAuthorization()
        queryset = ChartHeader.objects.all()
        filtering = {
            "society_id": ("exact", ),
            "shared_chart_id": ("exact", "isnull"),
            "channel": ("exact", ),
            "status": ("exact", ),
            "file_name": ("exact", ),
        }
        ordering = ["id", "uploaded_at"]

    def prepend_urls(self):
        return [
            re_path(
                r"^(?P<resource_name>%s)/upload/$" % self._meta.resource_name,
                self.wrap_view("upload_chart"),
                name="api_ratechart_upload"
            ),
            re_path(
                r"^(?P<resource_name>%s)/groups/$" % self._meta.resource_name,
                self.wrap_view("list_groups"),
                name="api_ratechart_groups"
            ),
            re_path(
                r"^(?P<resource_name>%s)/(?P<pk>\d+)/assign/$" % self._meta.resource_name,
                self.wrap_view("assign_societies"),
                name="api_ratechart_assign"
            ),
            re_path(
                r"^(?P<resource_name>%s)/(?P<pk>\d+)/remove_society/$" % self._meta.resource_name,
                self.wrap_view("remove_society"),
                name="api_ratechart_remove_society"
            ),
            re_path(
                r"^(?P<resource_name>%s)/(?P<pk>\d+)/toggle_status/$" % self._meta.resource_name,
                self.wrap_view("toggle_status"),
                name="api_ratechart_toggle_status"
            ),
            re_path(
                r"^(?P<resource_name>%s)/(?P<pk>\d+)/delete_group/$" % self._meta.resource_name,
                self.wrap_view("delete_group"),
                name="api_ratechart_delete_group"
            ),
            re_path(
                r"^(?P<resource_name>%s)/(?P<pk>\d+)/data/$" % self._meta.resource_name,
                self.wrap_view("chart_data"),
                name="api_ratechart_data"
            ),
        ]

    def upload_chart(self, request, **kwargs):
        """
        Upload a CSV rate chart for one or more societies
        """
        self.method_check(request, allowed=["post"])
        if not self.check_admin(request):
            return self.handle_error("Admin access required", status=403)

        upload = request.FILES.get("file", None)
        if upload is None:
            return self.handle_error("CSV file is required")
        society_ids = request.POST.get("societyIds", "")
        if not society_ids.strip():
            return self.handle_error("Society ID(s) required")

        try:
            result = AssignmentEngine().upload(
                upload.read(),
                upload.name,
                society_ids,
                request.POST.get("channel", None),
                uploaded_by=request.user.get_full_name() or
                request.user.get_username())
        except RateChartError as err:
            logger.warning("Rate chart upload of %s rejected: %s"
                           % (upload.name, err))
            return self.handle_engine_error(err)

        data = {"success": True}
        data.update(result)
        return JsonResponse(data, status=201)

    def assign_societies(self, request, **kwargs):
        """
        Share a chart group with additional societies
        """
        self.method_check(request, allowed=["post"])
        if not self.check_admin(request):
            return self.handle_error("Admin access required", status=403)

        try:
            body = self.request_data(request)
            result = AssignmentEngine().assign(
                kwargs["pk"],
                body.get("societyIds", None),
                replace_existing=as_bool(body.get("replaceExisting",
                                                  False)))
        except RateChartError as err:
            return self.handle_engine_error(err)

        data = {"success": True}
        data.update(result)
        return JsonResponse(data, status=200)

    def remove_society(self, request, **kwargs):
        """
        Remove one society from the group of a chart
        """
        self.method_check(request, allowed=["post", "delete"])
        if not self.check_admin(request):
            return self.handle_error("Admin access required", status=403)

        try:
            body = self.request_data(request)
            result = AssignmentEngine().remove_society(
                kwargs["pk"], body.get("societyId", None))
        except RateChartError as err:
            return self.handle_engine_error(err)

        data = {"success": True}
        data.update(result)
        return JsonResponse(data, status=200)

    def toggle_status(self, request, **kwargs):
        """
        Activate or deactivate every header of a chart group
        """
        self.method_check(request, allowed=["post"])
        if not self.check_admin(request):
            return self.handle_error("Admin access required", status=403)

        try:
            body = self.request_data(request)
            status = AssignmentEngine().toggle_status(
                kwargs["pk"], body.get("headerIds", None))
        except RateChartError as err:
            return self.handle_engine_error(err)

        return JsonResponse({"success": True, "newStatus": status},
                            status=200)

    def delete_group(self, request, **kwargs):
        self.method_check(request, allowed=["post", "delete"])
        if not self.check_admin(request):
            return self.handle_error("Admin access required", status=403)

        try:
            count = AssignmentEngine().delete_group(kwargs["pk"])
        except RateChartError as err:
            return self.handle_engine_error(err)

        return JsonResponse({"success": True, "deletedHeaders": count},
                            status=200)

    def chart_data(self, request, **kwargs):
        """
        Rate table of the group a chart belongs to
        """
        self.method_check(request, allowed=["get"])
        if not self.check_admin(request):
            return self.handle_error("Admin access required", status=403)

        try:
            master, rows = AssignmentEngine().get_chart_data(kwargs["pk"])
        except RateChartError as err:
            return self.handle_engine_error(err)

        data = {
            "success": True,
            "chartId": master.id,
            "fileName": master.file_name,
            "channel": master.channel,
            "data": [
                {"clr": row.clr, "fat": row.fat, "snf": row.snf,
                 "rate": row.rate}
                for row in rows
            ]
        }
        return JsonResponse(data, status=200)

    def list_groups(self, request, **kwargs):
        self.method_check(request, allowed=["get"])
        if not self.check_admin(request):
            return self.handle_error("Admin access required", status=403)

        try:
            groups = AssignmentEngine().list_groups(
                society_id=request.GET.get("societyId", None),
                channel=request.GET.get("channel", None))
        except RateChartError as err:
            return self.handle_engine_error(err)

        return JsonResponse({"success": True, "groups": groups}, status=200)

    def dehydrate(self, bundle):
        bundle.data["is_master"] = bundle.obj.is_master
        return bundle
