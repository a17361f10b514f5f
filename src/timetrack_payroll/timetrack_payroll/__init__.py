"""Time tracking & payroll package.

Organized by feature modules (users, rates, timetracks, payroll, access) with a
thin Flask controller layer on top of service/repository layers.
"""
