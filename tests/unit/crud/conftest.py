"""In-memory database fixtures for crud unit tests"""

import json

import pytest
from sqlmodel import SQLModel, Session

from ejpub.core.utils.hashing import sha256
from ejpub.crud.database import init_db, make_engine
from ejpub.crud.tables import Document


BODY = json.dumps({"time": 1, "blocks": [{"type": "paragraph", "data": {"text": "Hello"}}], "version": "2.0.0"})


@pytest.fixture(name="engine")
def engine_fixture():
    engine = make_engine("sqlite://")
    init_db(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture(name="session")
def session_fixture(engine):
    """Uncommitted session; each test sees an empty database."""
    with Session(engine) as s:
        yield s


@pytest.fixture(name="doc")
def doc_fixture(session):
    """node/1:body holding a one-paragraph document, flushed but not committed."""
    d = Document(entity_type="node", entity_id="1", field_id="body", data=BODY, hash=sha256(BODY))
    session.add(d)
    session.flush()
    return d
