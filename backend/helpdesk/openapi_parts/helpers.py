"""Helper functions for the OpenAPI builder."""
import re
from typing import Any, Dict, List, Type

from pydantic import BaseModel

_PATH_PARAM_RE = re.compile(r'\{(\w+)\}')


def caching_headers() -> Dict[str, Any]:
    return {
        "ETag": {"schema": {"type": "string"}},
        "Last-Modified": {"schema": {"type": "string"}},
        "X-Last-Modified-ISO": {"schema": {"type": "string"}},
    }


def object_schema(properties: Dict[str, Any]) -> Dict[str, Any]:
    return {"type": "object", "properties": dict(properties), "required": ["id"]}


def path_params(path: str) -> List[Dict[str, Any]]:
    params = []
    for name in _PATH_PARAM_RE.findall(path):
        schema = {"type": "string"} if name == "key" else {"type": "integer"}
        params.append({"name": name, "in": "path", "required": True, "schema": schema})
    return params


def request_schemas(models: Dict[str, Type[BaseModel]]) -> Dict[str, Any]:
    """JSON schemas for pydantic request models; nested definitions are hoisted into components."""
    out: Dict[str, Any] = {}
    for name, model in models.items():
        schema = model.model_json_schema(ref_template="#/components/schemas/{model}")
        for def_name, def_schema in schema.pop("$defs", {}).items():
            out.setdefault(def_name, def_schema)
        schema["title"] = name
        out[name] = schema
    return out


__all__ = ["caching_headers", "object_schema", "path_params", "request_schemas"]
