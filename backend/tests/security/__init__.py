"""Security tests for quotematch

This module contains security-focused tests including:
- Tenant escape/isolation attempts over the Python API and HTTP
- Injection-looking query text
"""
