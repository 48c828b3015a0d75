"""Workforce System package.

Feature modules (attendance, leaves, approvals, otp, users) each keep a thin
Flask controller over service and repository layers.
"""
