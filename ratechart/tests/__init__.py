'''
Shared fixtures for the rate chart tests
'''
from ..models import Machine, Society


COW_CSV = (
    "CLR,FAT,SNF,RATE\n"
    "25.5,3.5,8.5,32.50\n"
    "26.0,4.0,9.0,35.00"
)

BUFFALO_CSV = (
    "FAT,SNF,CLR,RATE\n"
    "6.0,9.0,28.0,48.00\n"
    "6.5,9.2,28.5,50.00\n"
    "7.0,9.5,29.0,52.50\n"
)


class SocietyFixturesMixin(object):
    '''
    Societies 10 to 14 (identifiers S-10 .. S-14), with two machines at
    society 10 and one at society 11.
    '''

    def setUp(self):
        super().setUp()
        self.societies = {}
        for society_id in range(10, 15):
            self.societies[society_id] = Society.objects.create(
                id=society_id,
                name="Society %d" % society_id,
                identifier="S-%d" % society_id)
        self.machine_a = Machine.objects.create(
            machine_id="M1", society=self.societies[10])
        self.machine_b = Machine.objects.create(
            machine_id="M2", society=self.societies[10])
        self.machine_c = Machine.objects.create(
            machine_id="M3", society=self.societies[11])
