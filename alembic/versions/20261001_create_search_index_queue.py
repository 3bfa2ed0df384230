"""create realms, events and the search index queue with reindex triggers

Revision ID: a1b2c3d4e5f6
Revises:
Create Date: 2026-10-01 10:00:00.000000

"""
from typing import Sequence, Union

from alembic import op


# revision identifiers, used by Alembic.
revision: str = "a1b2c3d4e5f6"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create tables, the queue and the triggers that fill the queue."""
    op.execute("""
        CREATE TABLE realms (
            id bigint PRIMARY KEY,
            parent bigint REFERENCES realms ON DELETE CASCADE,
            path_segment text NOT NULL,
            name text,
            index int NOT NULL DEFAULT 2147483647,
            full_path text NOT NULL,
            CONSTRAINT no_empty_name CHECK (name <> '')
        )
    """)
    op.execute("CREATE UNIQUE INDEX ix_realms_full_path ON realms (full_path text_pattern_ops)")
    op.execute("CREATE INDEX ix_realms_parent ON realms (parent)")

    op.execute("""
        CREATE TABLE events (
            id bigint PRIMARY KEY,
            series_id bigint,
            title text NOT NULL,
            description text,
            creators jsonb NOT NULL DEFAULT '[]',
            thumbnail text,
            duration bigint NOT NULL DEFAULT 0,
            created timestamp with time zone NOT NULL,
            is_live boolean NOT NULL DEFAULT false,
            read_roles jsonb NOT NULL DEFAULT '[]'
        )
    """)
    op.execute("CREATE INDEX ix_events_series_id ON events (series_id)")

    # All types of items that can cause the need for reindexing
    op.execute("CREATE TYPE search_index_item_kind AS ENUM ('realm', 'event')")

    # The same item may be queued more than once; the queue drain handles
    # all markers of an item in one go.
    op.execute("""
        CREATE TABLE search_index_queue (
            id bigint PRIMARY KEY GENERATED ALWAYS AS IDENTITY,
            item_id bigint NOT NULL,
            kind search_index_item_kind NOT NULL
        )
    """)
    op.execute(
        "CREATE INDEX ix_search_index_queue_kind_item ON search_index_queue (kind, item_id)"
    )

    # Queue realms on every change. Renaming a realm changes the
    # ancestor names of all its descendants, so those are queued too.
    op.execute("""
        CREATE FUNCTION queue_touched_realm_for_reindex()
           RETURNS trigger
           LANGUAGE plpgsql
        AS $$
        BEGIN
            IF tg_op <> 'INSERT' THEN
                INSERT INTO search_index_queue (item_id, kind) VALUES (old.id, 'realm');
            END IF;
            IF tg_op <> 'DELETE' THEN
                INSERT INTO search_index_queue (item_id, kind) VALUES (new.id, 'realm');
            END IF;

            IF tg_op = 'UPDATE' AND old.name IS DISTINCT FROM new.name THEN
                INSERT INTO search_index_queue (item_id, kind)
                SELECT id, 'realm'
                FROM realms
                WHERE full_path LIKE new.full_path || '/%';
            END IF;
            RETURN NULL;
        END;
        $$
    """)
    op.execute("""
        CREATE TRIGGER queue_touched_realm_for_reindex
        AFTER INSERT OR DELETE OR UPDATE OF id, parent, full_path, name
        ON realms
        FOR EACH ROW
        EXECUTE PROCEDURE queue_touched_realm_for_reindex()
    """)

    op.execute("""
        CREATE FUNCTION queue_touched_event_for_reindex()
           RETURNS trigger
           LANGUAGE plpgsql
        AS $$
        BEGIN
            IF tg_op <> 'INSERT' THEN
                INSERT INTO search_index_queue (item_id, kind) VALUES (old.id, 'event');
            END IF;
            IF tg_op <> 'DELETE' THEN
                INSERT INTO search_index_queue (item_id, kind) VALUES (new.id, 'event');
            END IF;
            RETURN NULL;
        END;
        $$
    """)
    op.execute("""
        CREATE TRIGGER queue_touched_event_for_reindex
        AFTER INSERT OR DELETE OR UPDATE
        ON events
        FOR EACH ROW
        EXECUTE PROCEDURE queue_touched_event_for_reindex()
    """)


def downgrade() -> None:
    """Remove triggers, the queue and the item tables."""
    op.execute("DROP TRIGGER IF EXISTS queue_touched_event_for_reindex ON events")
    op.execute("DROP FUNCTION IF EXISTS queue_touched_event_for_reindex()")
    op.execute("DROP TRIGGER IF EXISTS queue_touched_realm_for_reindex ON realms")
    op.execute("DROP FUNCTION IF EXISTS queue_touched_realm_for_reindex()")
    op.execute("DROP TABLE IF EXISTS search_index_queue")
    op.execute("DROP TYPE IF EXISTS search_index_item_kind")
    op.execute("DROP TABLE IF EXISTS events")
    op.execute("DROP TABLE IF EXISTS realms")
