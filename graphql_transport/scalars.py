"""
Upload custom scalar.
"""

from typing import Any, Optional

from django.core.files import File
from graphene import Scalar
from graphql.error import GraphQLError
from graphql.language import ast


class Upload(Scalar):
    """
    File uploaded through a multipart request.

    Resolvers receive the bound ``UploadValue`` (a Django ``File``), which can
    be read directly or saved to a ``FileField``.
    """

    @staticmethod
    def serialize(value: Any) -> Optional[str]:
        if value is None:
            return None
        return getattr(value, "filename", None) or getattr(value, "name", None)

    @staticmethod
    def parse_literal(node: ast.Node, _variables=None):
        raise GraphQLError("Upload values must be provided through multipart variables")

    @staticmethod
    def parse_value(value: Any) -> File:
        if isinstance(value, File):
            return value
        raise GraphQLError(
            f"Upload expects a file from a multipart request, got {type(value).__name__}"
        )
