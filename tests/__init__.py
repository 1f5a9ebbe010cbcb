"""
Skygraph Test Suite

Test organization:
- unit/ - Unit tests for the builder, each metric and the facade
- fixtures/ - Graph factories shared across tests
"""
