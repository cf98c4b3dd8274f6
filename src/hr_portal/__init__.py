"""HR portal package.

This package is organized by feature modules (attendance, schedules, overtime,
payroll, ...) with a thin Flask controller layer over service/repository layers.
"""
