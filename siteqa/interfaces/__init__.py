"""
Interfaces package: capability abstractions, error types and the HTTP API.
"""
