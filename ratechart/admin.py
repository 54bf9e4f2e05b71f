from django.contrib import admin
from django import forms
from django.forms import TextInput

from .models import Society
from .models import Machine
from .models import ChartHeader
from .models import ChartDataRow
from .models import MachineDownloadRecord


class MachineInlineForm(forms.ModelForm):

    class Meta:
        fields = '__all__'
        model = Machine
        widgets = {
            'machine_id': TextInput(attrs={'size': 40})
        }


class MachineInline(admin.TabularInline):
    model = Machine
    extra = 0
    form = MachineInlineForm


class SocietyAdmin(admin.ModelAdmin):
    inlines = [MachineInline]
    list_display = ('identifier', 'name')
    search_fields = ('identifier', 'name')


class ChartDataRowInline(admin.TabularInline):
    '''
    Rows are replaced wholesale by uploads, never edited one by one.
    '''
    model = ChartDataRow
    extra = 0
    readonly_fields = ('clr', 'fat', 'snf', 'rate')
    can_delete = False

    def has_add_permission(self, request, obj=None):
        return False


class ChartHeaderAdmin(admin.ModelAdmin):
    '''
    Read only: groups are changed through the rate chart API so that the
    master/shared invariants are kept.
    '''
    inlines = [ChartDataRowInline]
    list_display = ('id', 'file_name', 'channel', 'society',
                    'shared_chart', 'status', 'record_count', 'uploaded_at')
    list_filter = ('channel', 'status')
    readonly_fields = ('society', 'channel', 'shared_chart', 'status',
                       'file_name', 'uploaded_by', 'uploaded_at',
                       'record_count', 'checksum')

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


admin.site.register(Society, SocietyAdmin)
admin.site.register(ChartHeader, ChartHeaderAdmin)
admin.site.register(MachineDownloadRecord)
