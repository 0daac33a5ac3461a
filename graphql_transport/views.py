"""
GraphQL view speaking the HTTP transport of this package.

``GraphQLTransportView`` keeps graphene-django's execution pipeline and
GraphiQL rendering, and replaces request parsing and response encoding with
the transport decoders: GET query strings, JSON/CBOR bodies, batches and
multipart uploads in, JSON with mirrored cache and custom headers out.

Usage:
    from graphql_transport.views import GraphQLTransportView

    urlpatterns = [
        path("graphql/", GraphQLTransportView.as_view(schema=schema, batch=True)),
    ]
"""

import logging
from typing import Optional

from django.http import HttpRequest, HttpResponseNotAllowed, JsonResponse
from django.utils.decorators import method_decorator
from django.views.decorators.csrf import csrf_exempt

try:
    from graphene_django.views import GraphQLView, HttpError
except ImportError:
    raise ImportError(
        "graphene-django is required for GraphQL views. Install it with: pip install graphene-django"
    )

from .exceptions import ParseRequestError, UnsupportedBatch
from .extract import extract_batch_request, rejection_response
from .request import GraphQLRequest
from .response import (
    RESPONSE_STATE_ATTR,
    BatchResponse,
    GraphQLResponse,
    ResponseState,
    encode_response,
)
from .settings import MultipartOptions, TransportSettings, get_transport_settings

logger = logging.getLogger(__name__)


@method_decorator(csrf_exempt, name="dispatch")
class GraphQLTransportView(GraphQLView):
    """
    GraphQL view decoding requests with the transport extractors.

    Batches are accepted only when the view is created with ``batch=True``.
    """

    multipart_options: Optional[MultipartOptions] = None
    transport_settings: Optional[TransportSettings] = None

    def __init__(
        self,
        multipart_options: Optional[MultipartOptions] = None,
        transport_settings: Optional[TransportSettings] = None,
        **kwargs,
    ):
        super().__init__(**kwargs)
        if multipart_options is not None:
            self.multipart_options = multipart_options
        if transport_settings is not None:
            self.transport_settings = transport_settings

    def get_transport_settings(self) -> TransportSettings:
        return self.transport_settings or get_transport_settings()

    def get_multipart_options(self) -> MultipartOptions:
        return self.multipart_options or self.get_transport_settings().multipart_options()

    def dispatch(self, request: HttpRequest, *args, **kwargs):
        method = request.method.lower()
        if method not in ("get", "post"):
            return HttpResponseNotAllowed(
                ["GET", "POST"], "GraphQL only supports GET and POST requests."
            )
        if method == "get" and self.graphiql and self.can_display_graphiql(request, {}):
            return super().dispatch(request, *args, **kwargs)

        try:
            batch = extract_batch_request(
                request,
                options=self.get_multipart_options(),
                transport_settings=self.get_transport_settings(),
            )
        except ParseRequestError as exc:
            return rejection_response(exc)

        with batch:
            if batch.is_batch and not self.batch:
                return rejection_response(UnsupportedBatch())
            responses = []
            for operation in batch:
                try:
                    responses.append(self.execute_operation(request, operation))
                except HttpError as exc:
                    logger.info("GraphQL operation rejected: %s", exc.message)
                    if not batch.is_batch:
                        return self.http_error_response(exc)
                    responses.append(GraphQLResponse(errors=[{"message": exc.message}]))
            return encode_response(BatchResponse(responses, is_batch=batch.is_batch))

    def http_error_response(self, exc: HttpError) -> JsonResponse:
        """Render graphene-django's ``HttpError`` keeping its status and headers."""
        response = JsonResponse(
            {"errors": [{"message": exc.message}]}, status=exc.response.status_code
        )
        if exc.response.has_header("Allow"):
            response["Allow"] = exc.response["Allow"]
        return response

    def execute_operation(self, request: HttpRequest, operation: GraphQLRequest) -> GraphQLResponse:
        """
        Execute one operation of the batch with a fresh response state.

        Raises:
            HttpError: If graphene-django rejects the operation before
                execution, e.g. a mutation sent with GET.
        """
        state = ResponseState()
        setattr(request, RESPONSE_STATE_ATTR, state)
        result = self.execute_graphql_request(
            request,
            operation.to_dict(),
            operation.query,
            operation.variables,
            operation.operation_name,
        )
        if result is None:
            return GraphQLResponse(errors=[{"message": "Must provide query string."}])
        return GraphQLResponse.from_execution_result(result, state)
