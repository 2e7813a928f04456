"""Attendance Admin data layer.

This package is organized by feature modules (records, schema, imports,
exports) with a thin Flask controller layer over service/repository layers.
"""
