import json
from typing import Any, Dict, List

from ..models.query import QueryDescriptor
from . import filter_engine as fe


def _terms_on_both_sides(addresses) -> List[Dict[str, Any]]:
    values = list(addresses)
    return [{"terms": {"src_ip": values}}, {"terms": {"dst_ip": values}}]


def render_clause(kind: str, value: Any) -> Dict[str, Any]:
    if kind == fe.TIME:
        return {"range": {"@timestamp": {"gte": value.start, "lt": fe.adjusted_end(value)}}}
    if kind == fe.EVENT_CATEGORY:
        return {"term": {"event_type": value}}
    if kind == fe.VPN:
        return {"bool": {"should": [{"term": {"src_service": "vpn"}}, {"term": {"dst_service": "vpn"}}]}}
    if kind == fe.MFA:
        return {"term": {"auth_method": "mfa"}}
    if kind == fe.SUSPICIOUS:
        return {"term": {"label": "suspicious"}}
    if kind == fe.USERNAME:
        return {"term": {"username": value}}
    if kind == fe.SOURCE_ADDRESSES:
        return {"bool": {"should": _terms_on_both_sides(value)}}
    if kind == fe.EXCLUDED_ADDRESSES:
        return {"bool": {"must_not": _terms_on_both_sides(value)}}
    raise ValueError(f"unknown filter kind: {kind}")


def build_query(descriptor: QueryDescriptor) -> Dict[str, Any]:
    must = [render_clause(kind, value) for kind, value in fe.build_filter_chain(descriptor)]
    return {"query": {"bool": {"must": must}}}


def render(descriptor: QueryDescriptor) -> str:
    """Display-only Elasticsearch-style query, one clause per applied filter."""
    return json.dumps(build_query(descriptor), indent=2, ensure_ascii=False)
