"""Attendance Sync package.

Pulls punch logs from biometric terminals into MySQL and derives per-employee
attendance metrics from them. Organized by feature modules (devices, punches,
sync, settings, metrics) with a thin Flask controller layer over
service/repository layers.
"""
