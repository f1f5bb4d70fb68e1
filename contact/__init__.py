"""contact/ -- Contact form messages sent from the public site.

Layer rule: contact/ imports only stdlib and third-party libraries.
api/ and web/ import from contact/, not the other way around.
"""
