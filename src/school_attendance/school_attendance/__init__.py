"""School attendance package.

Organized by feature modules (roster, attendance, matching, statistics, ...)
with a thin Flask controller layer over service/repository layers.
"""
