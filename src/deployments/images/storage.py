"""
Data layer for software images, backed by PostgreSQL JSONB documents.

Each public operation acquires its own connection on entry and releases
it on every exit path. Input guards run before a connection is acquired.
"Not found" is never an error here: lookups return None, update returns
False and delete is a no-op. Database errors, including duplicate natural
keys rejected by the unique index, propagate unchanged.
"""

from datetime import datetime, timezone
from typing import Callable, ContextManager, List, Optional

import psycopg
from psycopg import sql
from psycopg.rows import dict_row
from psycopg.types.json import Jsonb

from deployments import db
from deployments.images import indexes
from deployments.images.errors import (
    InvalidIDError,
    InvalidImageError,
    InvalidModelError,
    InvalidVersionError,
)
from deployments.images.model import SoftwareImage, is_blank, is_malformed

ConnectionFactory = Callable[[], ContextManager[psycopg.Connection]]


class SoftwareImagesStorage:
    """
    Repository for software images.
    Encapsulates all SQL and queries for the images collection.
    """

    def __init__(self, connect: ConnectionFactory = db.get_connection):
        self._connect = connect

        table = indexes.images_table()
        id_column = sql.Identifier(indexes.STORAGE_KEY_ID)
        document = sql.Identifier(indexes.STORAGE_KEY_DOCUMENT)

        self._select_by_id = sql.SQL("SELECT {id}, {document} FROM {table} WHERE {id} = %s").format(
            id=id_column, document=document, table=table
        )
        self._exists_by_id = sql.SQL("SELECT 1 FROM {table} WHERE {id} = %s").format(
            table=table, id=id_column
        )
        self._select_by_name_and_model = sql.SQL(
            "SELECT {id}, {document} FROM {table} WHERE {name} = %s AND {model} = %s"
        ).format(
            id=id_column,
            document=document,
            table=table,
            name=indexes.document_path(indexes.STORAGE_KEY_NAME),
            model=indexes.document_path(indexes.STORAGE_KEY_MODEL),
        )
        self._select_all = sql.SQL("SELECT {id}, {document} FROM {table}").format(
            id=id_column, document=document, table=table
        )
        self._insert = sql.SQL("INSERT INTO {table} ({document}) VALUES (%s) RETURNING {id}").format(
            table=table, document=document, id=id_column
        )
        self._insert_with_id = sql.SQL(
            "INSERT INTO {table} ({id}, {document}) VALUES (%s, %s)"
        ).format(table=table, id=id_column, document=document)
        self._update = sql.SQL("UPDATE {table} SET {document} = %s WHERE {id} = %s").format(
            table=table, document=document, id=id_column
        )
        self._delete = sql.SQL("DELETE FROM {table} WHERE {id} = %s").format(
            table=table, id=id_column
        )

    def index_storage(self) -> None:
        """Set required indexes: unique index on name-model image keys."""
        with self._connect() as conn:
            indexes.ensure_indexes(conn)

    def exists(self, image_id: str) -> bool:
        """Check whether an image with the given id exists."""
        if is_malformed(image_id):
            raise InvalidIDError()

        with self._connect() as conn:
            with conn.cursor() as cur:
                cur.execute(self._exists_by_id, (image_id,))
                return cur.fetchone() is not None

    def insert(self, image: Optional[SoftwareImage]) -> None:
        """
        Persist a new image.

        When the image has no id the database assigns one, and it is set
        on the image once the insert succeeds. A duplicate name/model pair
        raises psycopg.errors.UniqueViolation.
        """
        if image is None:
            raise InvalidImageError()

        image.validate()

        assigned_id = image.id
        with self._connect() as conn:
            with conn.cursor() as cur:
                if image.id is None:
                    cur.execute(self._insert, (Jsonb(image.to_document()),))
                    assigned_id = cur.fetchone()[0]
                else:
                    cur.execute(self._insert_with_id, (image.id, Jsonb(image.to_document())))

        # Only reached once the connection scope has committed.
        image.id = assigned_id

    def update(self, image: Optional[SoftwareImage]) -> bool:
        """
        Replace a stored image and refresh its modification timestamp.

        Returns False if no image with that id exists.
        """
        if image is None:
            raise InvalidImageError()

        image.validate()

        if is_blank(image.id):
            raise InvalidIDError()

        previous = image.modified
        image.set_modified(datetime.now(timezone.utc))
        try:
            with self._connect() as conn:
                with conn.cursor() as cur:
                    cur.execute(self._update, (Jsonb(image.to_document()), image.id))
                    updated = cur.rowcount > 0
        except Exception:
            image.set_modified(previous)
            raise

        # The timestamp only moves when something was actually written.
        if not updated:
            image.set_modified(previous)
        return updated

    def find_image_by_application_and_model(
        self, version: str, model: str
    ) -> Optional[SoftwareImage]:
        """Find the image for an application name+version and target device model."""
        if is_malformed(version):
            raise InvalidVersionError()

        if is_malformed(model):
            raise InvalidModelError()

        with self._connect() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(self._select_by_name_and_model, (version, model))
                # The unique index allows one match at most.
                row = cur.fetchone()

        return self._to_image(row) if row else None

    def find_by_id(self, image_id: str) -> Optional[SoftwareImage]:
        """Get an image by its id, or None if not found."""
        if is_malformed(image_id):
            raise InvalidIDError()

        with self._connect() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(self._select_by_id, (image_id,))
                row = cur.fetchone()

        return self._to_image(row) if row else None

    def delete(self, image_id: str) -> None:
        """Delete an image by id. Deleting a missing image is a no-op."""
        if is_malformed(image_id):
            raise InvalidIDError()

        with self._connect() as conn:
            with conn.cursor() as cur:
                cur.execute(self._delete, (image_id,))

    def find_all(self) -> List[SoftwareImage]:
        """List all images, in no particular order."""
        with self._connect() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(self._select_all)
                rows = cur.fetchall()

        return [self._to_image(row) for row in rows]

    @staticmethod
    def _to_image(row: dict) -> SoftwareImage:
        return SoftwareImage.from_document(
            row[indexes.STORAGE_KEY_ID], row[indexes.STORAGE_KEY_DOCUMENT]
        )
