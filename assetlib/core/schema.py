# schema.py
TREE_VERSION = "v1"

TREE_SCHEMA = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "$id": "https://example.com/asset-tree.schema.json",
    "title": "Asset Tree Blob",
    "type": "object",
    "properties": {
        "version": {
            "type": "string",
            "enum": [TREE_VERSION]
        },
        "tree": {"$ref": "#/$defs/root"}
    },
    "required": ["version", "tree"],
    "additionalProperties": False,

    "$defs": {
        "root": {
            "description": "The entry point folder, always id 'root'",
            "allOf": [
                {"$ref": "#/$defs/folder"},
                {"properties": {"id": {"const": "root"}}}
            ]
        },
        "node": {
            "oneOf": [
                {"$ref": "#/$defs/folder"},
                {"$ref": "#/$defs/asset"}
            ]
        },
        "folder": {
            "type": "object",
            "description": "A folder holding an ordered list of nodes",
            "properties": {
                "kind": {"const": "folder"},
                "id": {"type": "string", "minLength": 1},
                "name": {"type": "string", "minLength": 1},
                "expanded": {"type": "boolean"},
                "children": {
                    "type": "array",
                    "items": {"$ref": "#/$defs/node"}
                }
            },
            "required": ["kind", "id", "name", "children"],
            "additionalProperties": False
        },
        "asset": {
            "type": "object",
            "description": "A leaf holding an embeddable image reference",
            "properties": {
                "kind": {"const": "asset"},
                "id": {"type": "string", "minLength": 1},
                "name": {"type": "string", "minLength": 1},
                "data": {"type": "string", "minLength": 1}
            },
            "required": ["kind", "id", "name", "data"],
            "additionalProperties": False
        }
    }
}
