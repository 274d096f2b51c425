"""Deterministic OpenAPI document builder.

Scope:
- List + single GET (and HEAD validators) for each registered entity
- Every other JSON procedure from the OPERATIONS registry, with request
  bodies generated from the pydantic request models
- Reusable params: limit, offset, per-entity sort, q search
"""
from typing import Any, Dict

from .openapi_parts.constants import ENTITIES, ENTITY_SCHEMAS, OPERATIONS, REQUEST_MODELS, SORT_DETAILS
from .openapi_parts.helpers import caching_headers, object_schema, path_params, request_schemas

__all__ = ["build_openapi_spec"]

_ERROR_RESPONSES = {
    "400": {"$ref": "#/components/responses/BadRequest"},
    "401": {"$ref": "#/components/responses/Unauthorized"},
    "403": {"$ref": "#/components/responses/Forbidden"},
}


def _list_paths(schema_name: str, coll: str, id_param: str, permission: str) -> Dict[str, Any]:
    single = f"{coll}/{{{id_param}}}"
    list_params = [
        {"$ref": "#/components/parameters/LimitParam"},
        {"$ref": "#/components/parameters/OffsetParam"},
        {"$ref": "#/components/parameters/SearchParam"},
        {"$ref": f"#/components/parameters/{schema_name}SortParam"},
    ]
    return {
        coll: {
            "get": {
                "summary": f"List {coll.strip('/').replace('-', ' ')}",
                "parameters": list_params,
                "x-required-permissions": [permission],
                "responses": {
                    "200": {
                        "description": "OK",
                        "headers": caching_headers(),
                        "content": {"application/json": {"schema": {
                            "type": "object",
                            "properties": {
                                "data": {"type": "array", "items": {"$ref": f"#/components/schemas/{schema_name}"}},
                                "pagination": {"$ref": "#/components/schemas/Pagination"},
                            },
                        }}},
                    },
                    "304": {"description": "Not Modified"},
                    **_ERROR_RESPONSES,
                },
            },
            "head": {
                "summary": f"{schema_name} list validators",
                "parameters": list_params,
                "x-required-permissions": [permission],
                "responses": {
                    "200": {"description": "Headers only", "headers": caching_headers()},
                    "304": {"description": "Not Modified"},
                },
            },
        },
        single: {
            "get": {
                "summary": f"Get {schema_name}",
                "parameters": path_params(single),
                "x-required-permissions": [permission],
                "responses": {
                    "200": {
                        "description": "OK",
                        "headers": caching_headers(),
                        "content": {"application/json": {"schema": {"$ref": f"#/components/schemas/{schema_name}"}}},
                    },
                    "304": {"description": "Not Modified"},
                    "404": {"$ref": "#/components/responses/NotFound"},
                },
            },
        },
    }


def _operation(method: str, path: str, summary: str, permission, body_ref) -> Dict[str, Any]:
    op: Dict[str, Any] = {"summary": summary, "responses": {"200": {"description": "OK"}, **_ERROR_RESPONSES}}
    params = path_params(path)
    if params:
        op["parameters"] = params
        op["responses"]["404"] = {"$ref": "#/components/responses/NotFound"}
    if body_ref:
        op["requestBody"] = {
            "required": True,
            "content": {"application/json": {"schema": {"$ref": f"#/components/schemas/{body_ref}"}}},
        }
    if method == "post" and path in ("/tickets", "/clients", "/service-tags", "/users", "/public/tickets", "/storage/upload"):
        op["responses"]["201"] = op["responses"].pop("200") | {"description": "Created"}
    if path.startswith("/mail/"):
        op["responses"]["502"] = {"description": "Every mail transport failed; detail joins their errors"}
    if permission is None:
        op["security"] = []
    elif permission:
        op["x-required-permissions"] = [permission]
    return op


def build_openapi_spec() -> Dict[str, Any]:
    schemas: Dict[str, Any] = {name: object_schema(props) for name, props in ENTITY_SCHEMAS.items()}
    schemas.update(request_schemas(REQUEST_MODELS))
    schemas["Pagination"] = {
        "type": "object",
        "properties": {
            "total": {"type": "integer"},
            "limit": {"type": "integer"},
            "offset": {"type": "integer"},
            "returned": {"type": "integer"},
        },
        "required": ["total", "limit", "offset", "returned"],
    }
    schemas["Error"] = {
        "type": "object",
        "properties": {"error": {
            "type": "object",
            "properties": {"status": {"type": "integer"}, "title": {"type": "string"}, "detail": {"type": "string"}},
            "required": ["status", "title", "detail"],
        }},
        "required": ["error"],
    }
    schemas["Ticket"]["x-transitions"] = {"pending_approval": ["open", "closed"]}

    error_content = {"application/json": {"schema": {"$ref": "#/components/schemas/Error"}}}
    components: Dict[str, Any] = {
        "schemas": schemas,
        "responses": {
            "NotFound": {"description": "Not Found", "content": error_content},
            "BadRequest": {"description": "Bad Request", "content": error_content},
            "Unauthorized": {"description": "Unauthorized", "content": error_content},
            "Forbidden": {"description": "Forbidden", "content": error_content},
        },
        "securitySchemes": {"BearerAuth": {"type": "http", "scheme": "bearer", "bearerFormat": "JWT"}},
        "parameters": {
            "LimitParam": {"name": "limit", "in": "query", "schema": {"type": "integer", "default": 50, "maximum": 200}},
            "OffsetParam": {"name": "offset", "in": "query", "schema": {"type": "integer", "default": 0}},
            "SearchParam": {"name": "q", "in": "query", "schema": {"type": "string"}, "description": "Case-insensitive search"},
        },
    }
    for pname, desc in SORT_DETAILS.items():
        components["parameters"][pname] = {"name": "sort", "in": "query", "schema": {"type": "string"}, "description": desc}

    paths: Dict[str, Any] = {}
    for schema_name, coll, id_param, permission in ENTITIES:
        for path, ops in _list_paths(schema_name, coll, id_param, permission).items():
            paths.setdefault(path, {}).update(ops)
    for method, path, summary, permission, body_ref in OPERATIONS:
        paths.setdefault(path, {})[method] = _operation(method, path, summary, permission, body_ref)

    # Add operationIds & tags
    tag_desc: Dict[str, str] = {}
    for path, ops in paths.items():
        tag = path.split("/")[1].replace("-", " ").title().replace(" ", "")
        for method, od in ops.items():
            rid = path.strip("/").replace("/", "_").replace("-", "_").replace("{", "").replace("}", "")
            od["operationId"] = f"{method}_{rid}"
            od["tags"] = [tag]
        tag_desc[tag] = f"{tag} endpoints"

    return {
        "openapi": "3.0.3",
        "info": {"title": "Helpdesk Admin API", "version": "0.1.0"},
        "paths": paths,
        "components": components,
        "security": [{"BearerAuth": []}],
        "tags": [{"name": n, "description": d} for n, d in sorted(tag_desc.items())],
    }
