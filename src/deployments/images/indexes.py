"""
Storage provisioning for software images.

Run once at process startup, before any request is served. All statements
are idempotent, so running it against an already provisioned database is
a no-op.
"""

from psycopg import sql

from deployments.images.model import CONSTRUCTOR_KEY, MODEL_KEY, NAME_KEY

# Database
DATABASE_NAME = "deployment_service"
COLLECTION_IMAGES = "images"

# Database keys. The _id column holds the image id, the document column
# holds everything else.
STORAGE_KEY_ID = "_id"
STORAGE_KEY_DOCUMENT = "document"
STORAGE_KEY_NAME = f"{CONSTRUCTOR_KEY}.{NAME_KEY}"
STORAGE_KEY_MODEL = f"{CONSTRUCTOR_KEY}.{MODEL_KEY}"

# Indexes
INDEX_UNIQUE_NAME_VERSION = "uniqueNameVersionIndex"


def document_path(key: str) -> sql.Composable:
    """SQL expression extracting a dotted document key as text."""
    path = "{" + ",".join(key.split(".")) + "}"
    return sql.SQL("({} #>> {})").format(
        sql.Identifier(STORAGE_KEY_DOCUMENT), sql.Literal(path)
    )


def images_table() -> sql.Composable:
    return sql.Identifier(DATABASE_NAME, COLLECTION_IMAGES)


def provisioning_statements() -> list[sql.Composable]:
    """
    Statements creating the images collection and its indexes.

    The unique index is built with a plain CREATE INDEX, never
    CONCURRENTLY, so it is in place before the first write can happen.
    """
    return [
        sql.SQL("CREATE SCHEMA IF NOT EXISTS {}").format(sql.Identifier(DATABASE_NAME)),
        sql.SQL(
            """
            CREATE TABLE IF NOT EXISTS {table} (
                {id} TEXT PRIMARY KEY DEFAULT gen_random_uuid()::text,
                {document} JSONB NOT NULL
            )
            """
        ).format(
            table=images_table(),
            id=sql.Identifier(STORAGE_KEY_ID),
            document=sql.Identifier(STORAGE_KEY_DOCUMENT),
        ),
        sql.SQL("CREATE UNIQUE INDEX IF NOT EXISTS {index} ON {table} ({name}, {model})").format(
            index=sql.Identifier(INDEX_UNIQUE_NAME_VERSION),
            table=images_table(),
            name=document_path(STORAGE_KEY_NAME),
            model=document_path(STORAGE_KEY_MODEL),
        ),
    ]


def ensure_indexes(conn) -> None:
    """Apply every provisioning statement on the given connection."""
    with conn.cursor() as cur:
        for statement in provisioning_statements():
            cur.execute(statement)
