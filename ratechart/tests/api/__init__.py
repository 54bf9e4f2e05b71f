'''
Testing the tastypie-based rate chart api
'''
from tastypie.test import ResourceTestCaseMixin

from django.contrib.auth.models import User

from django.test import TestCase

from .. import SocietyFixturesMixin


class RateChartResourceTestCase(SocietyFixturesMixin, ResourceTestCaseMixin,
                                TestCase):
    '''
    abstract class without tests to combine common settings in one place
    '''
    def setUp(self):
        super().setUp()

        self.username = 'ratechart'
        self.password = 'ratechart'
        self.user = User.objects.create_user(username=self.username,
                                             password=self.password,
                                             first_name='Chart',
                                             last_name='Admin',
                                             is_staff=True)

        self.plain_username = 'member'
        self.plain_password = 'member'
        self.plain_user = User.objects.create_user(
            username=self.plain_username,
            password=self.plain_password)

    def get_credentials(self):
        return self.create_basic(username=self.username,
                                 password=self.password)

    def get_plain_credentials(self):
        return self.create_basic(username=self.plain_username,
                                 password=self.plain_password)
