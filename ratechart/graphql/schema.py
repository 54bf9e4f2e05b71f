import graphene
from graphene_django.filter import DjangoFilterConnectionField

from ..models import ChartHeader as ChartHeaderModel

from .ratechart import ChartHeaderType, ChartHeaderTypeFilter


class Query(graphene.ObjectType):

    chart_headers = DjangoFilterConnectionField(
        ChartHeaderType,
        filterset_class=ChartHeaderTypeFilter
    )

    def resolve_chart_headers(self, info, **kwargs):
        user = info.context.user
        if user.is_authenticated:
            if user.is_staff or user.is_superuser:
                return ChartHeaderModel.objects.all()
        return ChartHeaderModel.objects.none()


schema = graphene.Schema(query=Query)
