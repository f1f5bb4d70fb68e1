"""auth/ -- Authentication and authorization package for the LRM2E site.

Layer rule: auth/ imports only core/, stdlib, and third-party libraries.
It does NOT import from api/, web/, or contact/.
api/ and web/ import from auth/, not the other way around.
"""
