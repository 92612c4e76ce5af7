"""Table-backed resources: binding, schemas, data access and the orchestrator."""

from namerec.viewset.resources.actions import Action
from namerec.viewset.resources.actions import action
from namerec.viewset.resources.binding import ResourceBinding
from namerec.viewset.resources.gateway import SQLAlchemyGateway
from namerec.viewset.resources.keys import LookupKey
from namerec.viewset.resources.keys import PrimaryKeyPolicy
from namerec.viewset.resources.keys import resolve_keys
from namerec.viewset.resources.plan import QueryPlan
from namerec.viewset.resources.schemas import SchemaSet
from namerec.viewset.resources.schemas import validate
from namerec.viewset.resources.search import ILikeSearchBackend
from namerec.viewset.resources.search import NullSearchBackend
from namerec.viewset.resources.search import SearchBackend
from namerec.viewset.resources.viewset import ResourceViewSet

__all__ = [
    'Action',
    'action',
    'ResourceBinding',
    'SQLAlchemyGateway',
    'LookupKey',
    'PrimaryKeyPolicy',
    'resolve_keys',
    'QueryPlan',
    'SchemaSet',
    'validate',
    'SearchBackend',
    'NullSearchBackend',
    'ILikeSearchBackend',
    'ResourceViewSet',
]
