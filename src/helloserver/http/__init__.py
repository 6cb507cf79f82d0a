"""
HTTP protocol pieces: the response serializer and the fixed payload.
"""

from .response import HTTPResponse, HELLO_BODY, HELLO_RESPONSE, hello_response

__all__ = ["HTTPResponse", "HELLO_BODY", "HELLO_RESPONSE", "hello_response"]
