"""Shared fixtures: small TEI documents and a temporary database."""

from pathlib import Path

import pytest

from iliadtutor.config import Settings
from iliadtutor.db.connection import get_connection, init_db

PRIMARY_XML = """<TEI xmlns="http://www.tei-c.org/ns/1.0">
<text><body>
<div type="translation">
  <div type="textpart" subtype="Book" n="1">
    <div type="textpart" subtype="card" n="1">
      <p><milestone unit="line" n="1"/>The wrath sing, goddess,
      <milestone unit="line" n="3"/>that brought countless woes,
      <milestone unit="line" n="5"/>and sent forth many souls
      <milestone unit="line" n="8"/>to <hi>Hades</hi>.</p>
    </div>
  </div>
  <div type="textpart" subtype="book" n="3">
    <p>Now when they were marshalled <milestone unit="line" n="2"/>each with their leaders</p>
  </div>
</div>
</body></text>
</TEI>
"""

SUPPLEMENT_XML = """<TEI xmlns="http://www.tei-c.org/ns/1.0">
<text><body>
<div type="translation">
  <div type="textpart" subtype="book" n="1">
    <p><milestone unit="line" n="5"/>and hurled many mighty souls</p>
  </div>
  <div type="textpart" subtype="book" n="2">
    <p><milestone unit="line" n="1"/>Now all other gods slept</p>
  </div>
</div>
</body></text>
</TEI>
"""


def _greek_book(n: int, count: int) -> str:
    lines = "\n".join(f'    <l n="{i}">στίχος {i}</l>' for i in range(1, count + 1))
    return f'  <div type="textpart" subtype="Book" n="{n}">\n{lines}\n  </div>'


GREEK_XML = f"""<TEI xmlns="http://www.tei-c.org/ns/1.0">
<text><body>
<div type="edition">
{_greek_book(1, 20)}
{_greek_book(2, 3)}
</div>
</body></text>
</TEI>
"""


@pytest.fixture
def corpus_dir(tmp_path) -> Path:
    """Data directory holding the Greek text and both translation documents."""
    data_dir = tmp_path / "data"
    data_dir.mkdir()
    (data_dir / "illiadGreek.xml").write_text(GREEK_XML, encoding="utf-8")
    (data_dir / "murrayTranslation.xml").write_text(PRIMARY_XML, encoding="utf-8")
    (data_dir / "murrayTranslationSupplement.xml").write_text(
        SUPPLEMENT_XML, encoding="utf-8"
    )
    return data_dir


@pytest.fixture
def settings(tmp_path, corpus_dir) -> Settings:
    return Settings(db_path=tmp_path / "iliadtutor.db", data_dir=corpus_dir)


@pytest.fixture
def db_conn(tmp_path):
    conn = get_connection(tmp_path / "test.db")
    init_db(conn)
    yield conn
    conn.close()


@pytest.fixture
def primary_xml() -> str:
    return PRIMARY_XML
