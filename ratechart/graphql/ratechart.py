import graphene
from graphene import relay
from graphene_django import DjangoObjectType
from django_filters import FilterSet, OrderingFilter

from .utils import ExtendedConnection

from ..models import ChartHeader as ChartHeaderModel


class ChartHeaderType(DjangoObjectType):
    class Meta:
        model = ChartHeaderModel
        fields = ('id', 'channel', 'shared_chart', 'status',
                  'file_name', 'uploaded_by', 'uploaded_at', 'record_count',
                  'checksum')
        interfaces = [relay.Node]
        connection_class = ExtendedConnection
        convert_choices_to_enum = False

    pk = graphene.Int(source='pk')
    society_id = graphene.Int(source='society_id')
    master_id = graphene.Int(source='master_id')
    is_master = graphene.Boolean(source='is_master')


class ChartHeaderTypeFilter(FilterSet):
    class Meta:
        model = ChartHeaderModel
        fields = {
            'society': ['exact'],
            'channel': ['exact'],
            'status': ['exact'],
            'shared_chart': ['exact', 'isnull'],
        }

    order_by = OrderingFilter(
        # must contain strings or (field name, param name) pairs
        fields=(
            ('uploaded_at', 'uploadedAt'),
            ('id', 'id'),
        )
    )
