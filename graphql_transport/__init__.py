"""
GraphQL over HTTP and WebSocket transport for Django.

Decodes GET, JSON/CBOR and multipart upload requests into GraphQL batches,
encodes batch results back to HTTP responses, and bridges WebSocket
connections to a GraphQL subscription engine.
"""

__version__ = "0.1.0"
