import pytest
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from app.db.models import Doctor
from app.db.models.health.doctor import encode_list


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def add_doctors(engine):
    def _add(*rows):
        with Session(engine) as session:
            for row in rows:
                row = dict(row)
                row.setdefault("specialty", "General Physician")
                row.setdefault("experience", 5)
                row.setdefault("rating", 4.0)
                row.setdefault("location", "Hyderabad")
                row["languages"] = encode_list(row.get("languages"))
                row["available_days"] = encode_list(row.get("available_days"))
                session.add(Doctor(**row))
            session.commit()
    return _add
