from typing import List, Optional, Union

from pydantic import BaseModel, Field

from queryme_commons.dependencies.protocol_provider import get_protocol_settings
from queryme_commons.model.protocol_settings_model import ProtocolSettings
from queryme_commons.utils.query_builder import QueryBuilder


class SortField(BaseModel):
    """A single ordering directive"""
    field: str
    ascending: bool = True

    def to_token(self) -> str:
        return QueryBuilder.order(self.field, self.ascending)


class QueryRequest(BaseModel):
    """Filter, sort and limit parts of a request's query string"""
    filter: Optional[str] = None
    sort: Optional[Union[str, List[Union[SortField, str]]]] = None
    limit: Optional[int] = Field(default=None, ge=0)

    def sort_token(self) -> Optional[str]:
        if self.sort is None or isinstance(self.sort, str):
            return self.sort
        # plain strings are taken as tokens already built by QueryBuilder.order
        return QueryBuilder.sort([order if isinstance(order, str) else order.to_token() for order in self.sort])

    def to_query_string(self, settings: Optional[ProtocolSettings] = None) -> str:
        """
        Builds `f=<predicate>&s=<sort>&l=<limit>`, leaving out unset parts.
        Tokens are already URL-safe and are not escaped again.
        """
        if settings is None:
            settings = get_protocol_settings()

        parts = []
        if self.filter is not None:
            parts.append(f"{settings.filter_query_name}={self.filter}")
        sort = self.sort_token()
        if sort is not None:
            parts.append(f"{settings.sort_query_name}={sort}")
        if self.limit is not None:
            parts.append(f"{settings.limit_query_name}={self.limit}")
        return '&'.join(parts)

    def to_url(self, base_url: str, settings: Optional[ProtocolSettings] = None) -> str:
        query = self.to_query_string(settings)
        if not query:
            return base_url
        separator = '&' if '?' in base_url else '?'
        return base_url + separator + query
