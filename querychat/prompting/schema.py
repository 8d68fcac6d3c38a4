"""Static data-model descriptions injected into every prompt.

Each dialect has one built-in descriptor. The document descriptor mirrors the
`skus` collection of the production store; the relational descriptor spreads
the same domain over several tables so cross-table questions (for example
"all distinct clients") have more than one source.

`load_schema` lets operators swap the text for a file without touching the
prompt builder.
"""

from typing import Optional

from querychat.core.settings import DOCUMENT_DIALECT, RELATIONAL_DIALECT


DOCUMENT_SCHEMA = """
{
    "skus": {
        "_id": "ObjectId",
        "name": "string",
        "purchase_cost": "decimal",
        "packaging_cost": "decimal",
        "factory_to_warehouse_cost": "object",
        "warehouse_to_fba_cost": "object",
        "last_mile_cost": "object",
        "mrp": "decimal",
        "quantity_in_min_unit": "integer",
        "asin": "string",
        "client_id": "ObjectId",
        "tags": "array",
        "createdAt": "Date",
        "updatedAt": "Date"
    }
}
""".strip()


RELATIONAL_SCHEMA = """
CREATE TABLE clients (
    id INTEGER PRIMARY KEY,
    client VARCHAR(255) NOT NULL,
    created_at TIMESTAMP
);

CREATE TABLE skus (
    id INTEGER PRIMARY KEY,
    name VARCHAR(255) NOT NULL,
    asin VARCHAR(32),
    client VARCHAR(255),
    purchase_cost DECIMAL(12, 2),
    packaging_cost DECIMAL(12, 2),
    mrp DECIMAL(12, 2),
    quantity_in_min_unit INTEGER,
    created_at TIMESTAMP,
    updated_at TIMESTAMP
);

CREATE TABLE shipments (
    id INTEGER PRIMARY KEY,
    sku_id INTEGER REFERENCES skus(id),
    client VARCHAR(255),
    leg VARCHAR(32),
    cost DECIMAL(12, 2),
    shipped_at TIMESTAMP
);
""".strip()


BUILTIN_SCHEMAS = {
    DOCUMENT_DIALECT: DOCUMENT_SCHEMA,
    RELATIONAL_DIALECT: RELATIONAL_SCHEMA,
}


def load_schema(dialect: str, schema_path: Optional[str] = None) -> str:
    """Return the schema descriptor for `dialect`.

    Args:
        dialect: `document` or `relational`.
        schema_path: Optional file overriding the built-in text.

    Raises:
        ValueError: Unknown dialect.
        OSError: `schema_path` is set but unreadable.
    """
    if dialect not in BUILTIN_SCHEMAS:
        raise ValueError(f"Unknown dialect: {dialect!r}")

    if schema_path:
        with open(schema_path, "r", encoding="utf-8") as f:
            return f.read().strip()

    return BUILTIN_SCHEMAS[dialect]
