import json
import logging

from django.http import JsonResponse
from tastypie.authentication import (
    BasicAuthentication,
    MultiAuthentication,
    SessionAuthentication
)
from tastypie.exceptions import BadRequest
from tastypie.resources import ModelResource

from ..exceptions import (
    ConflictError,
    NotFoundError,
    StorageError,
    ValidationError
)


logger = logging.getLogger(__name__)

default_authentication = MultiAuthentication(BasicAuthentication(),
                                             SessionAuthentication())


class RateChartModelResource(ModelResource):
    '''
    Common behaviour of the rate chart resources: JSON error bodies in the
    form {"success": false, "error": "..."} and translation of engine
    errors into HTTP statuses.
    '''

    class Meta:
        object_class = None
        authentication = default_authentication
        always_return_data = True

    def handle_error(self, message, status=400, **extra):
        """
        Return error message in JSON format
        """
        data = {
            "success": False,
            "error": message
        }
        data.update(extra)
        return JsonResponse(data, status=status)

    def handle_engine_error(self, err):
        if isinstance(err, ValidationError):
            return self.handle_error(
                str(err), status=400,
                missing_headers=err.missing_headers,
                row_errors=[{"line": e.line, "message": e.message}
                            for e in err.row_errors])
        if isinstance(err, ConflictError):
            return self.handle_error(str(err), status=409,
                                     conflicts=err.conflicts)
        if isinstance(err, NotFoundError):
            return self.handle_error(str(err), status=404)
        if isinstance(err, StorageError):
            return self.handle_error(str(err), status=500)
        raise err

    def check_admin(self, request):
        '''
        Rate charts are managed by staff users only.
        '''
        self.is_authenticated(request)
        user = request.user
        return user.is_authenticated and (user.is_staff or user.is_superuser)

    def request_data(self, request):
        '''
        Body of a JSON (or form encoded) POST as a dict.
        '''
        content_type = request.META.get("CONTENT_TYPE", "application/json")
        if content_type.startswith("multipart") or \
                content_type.startswith("application/x-www-form-urlencoded"):
            return request.POST
        if not request.body:
            return {}
        try:
            data = self.deserialize(request, request.body,
                                    format="application/json")
        except (BadRequest, ValueError, json.JSONDecodeError):
            raise ValidationError("Request body is not valid JSON")
        if not isinstance(data, dict):
            raise ValidationError("Request body must be a JSON object")
        return data
