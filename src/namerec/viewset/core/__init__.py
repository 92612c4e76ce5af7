"""Core ViewSet components."""

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
from namerec.viewset.core.types import Operation
from namerec.viewset.core.types import OperationHandler
from namerec.viewset.core.types import PaginationMode
from namerec.viewset.core.types import QueryParams
from namerec.viewset.core.types import RequestContext

__all__ = [
    'Operation',
    'OperationHandler',
    'PaginationMode',
    'QueryParams',
    'RequestContext',
    'ViewSetSettings',
    'get_settings',
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
]
