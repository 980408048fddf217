"""core/ -- Configuration, status codes, errors and the database schema.

core/ is the kernel and has no reverse dependencies.
"""
