from django.contrib import admin
from django.urls import include, path
from django.views.decorators.csrf import csrf_exempt
from graphene_django.views import GraphQLView
from tastypie.api import Api

from .api import (
    RateChartAppResource,
    DownloadStatusAppResource,
    DeviceDownloadAppResource
)
from .graphql.schema import schema


v1_api = Api(api_name='v1')
v1_api.register(RateChartAppResource())
v1_api.register(DownloadStatusAppResource())
v1_api.register(DeviceDownloadAppResource())

urlpatterns = [
    path('api/', include(v1_api.urls)),
    path('graphql/', csrf_exempt(GraphQLView.as_view(schema=schema))),
    path('admin/', admin.site.urls),
]
