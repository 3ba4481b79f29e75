"""LMS attendance package.

Organized by feature modules (students, offerings, lectures, attendance, ...)
with a thin Flask controller layer over service/repository layers.
"""
