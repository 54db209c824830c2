"""
gqlcache - Gateway Module

Caching GraphQL forwarder and request inspection helpers.
"""

from .gateway import GatewayResponse, GraphQLGateway
from .request import extract_operation_name, extract_user_id, is_mutation

__all__ = [
    "GraphQLGateway",
    "GatewayResponse",
    "extract_operation_name",
    "extract_user_id",
    "is_mutation",
]
