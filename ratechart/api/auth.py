import logging

from tastypie.authorization import Authorization
from tastypie.exceptions import Unauthorized

from ..models import ChartHeader, ChartDataRow, MachineDownloadRecord


logger = logging.getLogger(__name__)


def is_chart_admin(user):
    return user.is_authenticated and (user.is_staff or user.is_superuser)


class ChartAuthorization(Authorization):
    """
    Authorisation class for Tastypie
    """
    def read_list(self, object_list, bundle):
        authuser = bundle.request.user
        if isinstance(bundle.obj, (ChartHeader, ChartDataRow,
                                   MachineDownloadRecord)):
            if is_chart_admin(authuser):
                return object_list
            return object_list.none()
        raise Unauthorized("Not a rate chart resource.")

    def read_detail(self, object_list, bundle):
        if bundle.request.user.is_authenticated and \
           bundle.request.user.is_superuser:
            return True
        return is_chart_admin(bundle.request.user)

    def create_detail(self, object_list, bundle):
        '''
        Charts are only ever created through the upload and assign
        endpoints, which run the assignment engine.
        '''
        raise Unauthorized("Use the upload or assign endpoints.")

    def update_detail(self, object_list, bundle):
        raise Unauthorized("Use the assign or toggle_status endpoints.")

    def delete_detail(self, object_list, bundle):
        raise Unauthorized("Use the remove_society or delete_group "
                           "endpoints.")
