"""Campus Manager package.

Organized by feature modules (students, fees, textbooks, accounting, ...)
with a thin Flask controller layer on top of service/repository layers.
Every record belongs to a branch; non-super-admin users only see their own.
"""
