"""Workforce Portal package.

Feature modules (users, access, attendance, leaves, tasks, projects, reports)
each keep a thin Flask controller on top of service and repository layers.
"""
