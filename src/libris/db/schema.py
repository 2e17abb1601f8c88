# ABOUTME: SQL DDL statements for the Libris library database schema.
# ABOUTME: Books, files, authors, tags, their join tables, and the FTS5 search index.

SCHEMA_VERSION = 1

SCHEMA_V1 = """
CREATE TABLE books (
    id          INTEGER PRIMARY KEY,
    created_on  TIMESTAMP NOT NULL DEFAULT (datetime()),
    updated_on  TIMESTAMP NOT NULL DEFAULT (datetime()),
    series      TEXT,
    title       TEXT NOT NULL
);
CREATE INDEX idx_books_title ON books(title);

CREATE TABLE files (
    id                INTEGER PRIMARY KEY,
    created_on        TIMESTAMP NOT NULL DEFAULT (datetime()),
    updated_on        TIMESTAMP NOT NULL DEFAULT (datetime()),
    book_id           INTEGER NOT NULL REFERENCES books(id) ON DELETE CASCADE,
    extension         TEXT NOT NULL,
    original_filename TEXT NOT NULL,
    filename          TEXT NOT NULL UNIQUE,
    file_size         INTEGER NOT NULL,
    file_mtime        TIMESTAMP NOT NULL,
    hash              TEXT NOT NULL UNIQUE,
    source            TEXT
);
CREATE INDEX idx_files_book_id ON files(book_id);

CREATE TABLE authors (
    id          INTEGER PRIMARY KEY,
    created_on  TIMESTAMP NOT NULL DEFAULT (datetime()),
    updated_on  TIMESTAMP NOT NULL DEFAULT (datetime()),
    name        TEXT NOT NULL UNIQUE
);

CREATE TABLE books_authors (
    id          INTEGER PRIMARY KEY,
    created_on  TIMESTAMP NOT NULL DEFAULT (datetime()),
    updated_on  TIMESTAMP NOT NULL DEFAULT (datetime()),
    book_id     INTEGER NOT NULL REFERENCES books(id) ON DELETE CASCADE,
    author_id   INTEGER NOT NULL REFERENCES authors(id) ON DELETE CASCADE,
    UNIQUE (book_id, author_id)
);
CREATE INDEX idx_books_authors_author_id ON books_authors(author_id);

CREATE TABLE tags (
    id          INTEGER PRIMARY KEY,
    created_on  TIMESTAMP NOT NULL DEFAULT (datetime()),
    updated_on  TIMESTAMP NOT NULL DEFAULT (datetime()),
    name        TEXT NOT NULL UNIQUE
);

CREATE TABLE files_tags (
    id          INTEGER PRIMARY KEY,
    created_on  TIMESTAMP NOT NULL DEFAULT (datetime()),
    updated_on  TIMESTAMP NOT NULL DEFAULT (datetime()),
    file_id     INTEGER NOT NULL REFERENCES files(id) ON DELETE CASCADE,
    tag_id      INTEGER NOT NULL REFERENCES tags(id) ON DELETE CASCADE,
    UNIQUE (file_id, tag_id)
);
CREATE INDEX idx_files_tags_tag_id ON files_tags(tag_id);

-- One search document per book; rowid is the book ID.
-- Maintained by libris.db.search, not by triggers.
CREATE VIRTUAL TABLE books_fts USING fts5(
    author, series, title, extension, tags, filename, source
);

CREATE TABLE schema_version (
    version    INTEGER NOT NULL,
    applied_at TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%S', 'now'))
);

INSERT INTO schema_version (version) VALUES (1);
"""
