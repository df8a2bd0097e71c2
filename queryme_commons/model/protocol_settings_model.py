from pydantic import BaseModel, Field


class ProtocolSettings(BaseModel):
    """Names of the query-string parameters read by the server"""
    filter_query_name: str = Field(min_length=1)
    sort_query_name: str = Field(min_length=1)
    limit_query_name: str = Field(min_length=1)
