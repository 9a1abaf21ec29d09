"""build-credentials: Android build credential management.

Resolves the signing keystore and push key of a project against the remote
credential service through a sequence of interactive views.
"""

__version__ = "0.1.0"
