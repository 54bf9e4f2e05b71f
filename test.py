#!/usr/bin/env python

# Test runner for the ratechart app, with coverage

import os
import sys

import coverage


if __name__ == "__main__":
    os.environ.setdefault("DJANGO_SETTINGS_MODULE", "ratechart.test_settings")

    from django.core.management import execute_from_command_line

    # Start coverage before Django imports the app, otherwise module-level
    # code is missing from the report
    cov = coverage.Coverage(source=['ratechart'],
                            omit=['*/test.py', '*/tests/*',
                                  '*/test_settings.py', '*/migrations/*'])
    cov.set_option('report:show_missing', True)
    cov.erase()
    cov.start()

    if len(sys.argv) < 2:
        execute_from_command_line(['./test.py', 'test', 'ratechart'])
    else:
        execute_from_command_line(sys.argv)

    cov.stop()
    cov.save()
    cov.report()
