"""
ViewSet - REST-style resource views over SQLAlchemy tables

Generic list/create/retrieve/update/destroy/search endpoints with a
query-string language for filtering, sorting and pagination.
"""

from namerec.viewset.core.config import ViewSetSettings
from namerec.viewset.core.config import get_settings
from namerec.viewset.core.exceptions import BackendError
from namerec.viewset.core.exceptions import InvalidOperatorSyntaxError
from namerec.viewset.core.exceptions import InvalidOrderSpecError
from namerec.viewset.core.exceptions import MissingPrimaryKeyError
from namerec.viewset.core.exceptions import NotFoundError
from namerec.viewset.core.exceptions import NotImplementedCombinationError
from namerec.viewset.core.exceptions import OperationNotAllowedError
from namerec.viewset.core.exceptions import QueryParseError
from namerec.viewset.core.exceptions import SchemaValidationError
from namerec.viewset.core.exceptions import TypeMismatchError
from namerec.viewset.core.exceptions import UnknownFilterFieldError
from namerec.viewset.core.exceptions import ViewSetError
from namerec.viewset.core.logging import configure_logging
from namerec.viewset.core.types import Operation
from namerec.viewset.core.types import OperationHandler
from namerec.viewset.core.types import PaginationMode
from namerec.viewset.core.types import RequestContext
from namerec.viewset.query.parser import FilterParser
from namerec.viewset.query.parser import parse_query_string
from namerec.viewset.registry import ResourceRegistry
from namerec.viewset.registry import get_global_registry
from namerec.viewset.registry import init_global_registry
from namerec.viewset.resources.actions import action
from namerec.viewset.resources.binding import ResourceBinding
from namerec.viewset.resources.keys import PrimaryKeyPolicy
from namerec.viewset.resources.search import ILikeSearchBackend
from namerec.viewset.resources.search import NullSearchBackend
from namerec.viewset.resources.search import SearchBackend
from namerec.viewset.resources.viewset import ResourceViewSet
from namerec.viewset.routing import install_exception_handlers
from namerec.viewset.routing import register

__version__ = '0.1.0'

__all__ = [
    # Core types
    'Operation',
    'OperationHandler',
    'PaginationMode',
    'RequestContext',
    # Configuration
    'ViewSetSettings',
    'get_settings',
    'configure_logging',
    # Exceptions
    'ViewSetError',
    'QueryParseError',
    'UnknownFilterFieldError',
    'InvalidOperatorSyntaxError',
    'TypeMismatchError',
    'NotImplementedCombinationError',
    'InvalidOrderSpecError',
    'SchemaValidationError',
    'NotFoundError',
    'MissingPrimaryKeyError',
    'OperationNotAllowedError',
    'BackendError',
    # Query language
    'FilterParser',
    'parse_query_string',
    # Resources
    'ResourceBinding',
    'PrimaryKeyPolicy',
    'ResourceViewSet',
    'action',
    'SearchBackend',
    'NullSearchBackend',
    'ILikeSearchBackend',
    # Registry
    'ResourceRegistry',
    'init_global_registry',
    'get_global_registry',
    # Routing
    'register',
    'install_exception_handlers',
]
