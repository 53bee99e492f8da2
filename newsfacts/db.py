import json
import logging
import sqlite3
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Set

import sqlite_utils

from newsfacts.errors import PersistenceError

logger = logging.getLogger(__name__)

# Insert column order; values are bound positionally in exactly this order
INSERT_COLUMNS = [
    "url",
    "title",
    "publication",
    "authors",
    "date_published",
    "content",
    "source",
    "headline",
    "summary",
]


class Database:
    def __init__(self, db_path: str = "news.db", db: Optional[sqlite_utils.Database] = None):
        """
        Args:
            db_path: Path to SQLite database file
            db: Existing sqlite_utils.Database (e.g. an in-memory connection)
        """
        self.db_path = db_path
        if db is None:
            # Endpoints may run on a different thread than the one that opened the file
            db = sqlite_utils.Database(sqlite3.connect(db_path, check_same_thread=False))
        self.db = db
        self.init_db()
        logger.info(f"Database ready: {db_path}")

    def init_db(self):
        """Create the articles table if it does not exist"""
        self.db["articles"].create({
            "id": str,
            "url": str,
            "title": str,
            "publication": str,
            "authors": str,  # JSON array
            "date_published": str,  # ISO-8601, UTC
            "content": str,
            "headline": str,
            "source": str,
            "summary": str,
            "created_at": str,
            "updated_at": str,
        }, pk="id", if_not_exists=True)
        self.db["articles"].create_index(["url"], if_not_exists=True)
        self.db["articles"].create_index(["date_published"], if_not_exists=True)

    def existing_urls(self, urls: Iterable[str]) -> Set[str]:
        """
        Return the subset of urls already stored, using one query.
        The candidate list is bound as a single JSON parameter.
        """
        urls = [url for url in urls if url]
        if not urls:
            return set()
        rows = self.db.query(
            "SELECT url FROM articles WHERE url IN (SELECT value FROM json_each(?))",
            [json.dumps(urls)],
        )
        return {row["url"] for row in rows}

    def insert_articles(self, rows: List[Dict[str, Any]]) -> int:
        """
        Insert all rows with one multi-row INSERT inside a transaction.
        Returns the number of rows written. An empty list is a no-op.
        Raises PersistenceError on a row shape mismatch or database error;
        in both cases nothing is written.
        """
        if not rows:
            logger.info("No articles to save")
            return 0

        expected = set(INSERT_COLUMNS)
        for index, row in enumerate(rows):
            if set(row) != expected:
                missing = sorted(expected - set(row))
                extra = sorted(set(row) - expected)
                raise PersistenceError(
                    f"Row {index} does not match insert columns (missing={missing}, extra={extra})"
                )

        now = datetime.now(timezone.utc).isoformat()
        columns = ["id"] + INSERT_COLUMNS + ["created_at", "updated_at"]
        values = []
        for row in rows:
            values.append(uuid.uuid4().hex)
            for col in INSERT_COLUMNS:
                value = row[col]
                values.append(json.dumps(value) if col == "authors" else value)
            values.extend([now, now])

        row_placeholder = "(" + ", ".join("?" for _ in columns) + ")"
        query = (
            f"INSERT INTO articles ({', '.join(columns)}) VALUES "
            + ", ".join(row_placeholder for _ in rows)
        )

        logger.info(f"Saving {len(rows)} articles in db")
        try:
            with self.db.conn:
                self.db.execute(query, values)
        except sqlite3.Error as e:
            raise PersistenceError(f"Batch insert of {len(rows)} articles failed: {e}") from e
        return len(rows)

    def _decode(self, row: Dict[str, Any]) -> Dict[str, Any]:
        if row.get("authors"):
            try:
                row["authors"] = json.loads(row["authors"])
            except ValueError:
                row["authors"] = [row["authors"]]
        else:
            row["authors"] = []
        return row

    def list_articles(self, limit: int = 20, offset: int = 0) -> List[Dict[str, Any]]:
        rows = self.db.query(
            "SELECT * FROM articles ORDER BY date_published DESC LIMIT ? OFFSET ?",
            [limit, offset],
        )
        return [self._decode(row) for row in rows]

    def get_article(self, article_id: str) -> Optional[Dict[str, Any]]:
        rows = list(self.db.query("SELECT * FROM articles WHERE id = ?", [article_id]))
        if not rows:
            return None
        return self._decode(rows[0])

    def count(self) -> int:
        return self.db["articles"].count
