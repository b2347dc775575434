"""Tests for ProspectListRepositorySQLAlchemy on an in-memory SQLite database."""

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.db.base import Base
from app.db.models import ProspectColumnORM, ProspectListORM, ProspectORM
from app.models import ProspectCandidate
from app.repositories.prospect_list_repository_sqlalchemy import (
    ProspectListRepositorySQLAlchemy,
    build_prospect_data,
    selected_column_names,
)


@pytest.fixture
def db_session():
    """Session bound to a fresh in-memory database."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest.fixture
def repo(db_session):
    return ProspectListRepositorySQLAlchemy(db_session)


@pytest.fixture
def prospects(sample_candidate):
    return [
        sample_candidate,
        ProspectCandidate(name="Acme Analytics", source="crunchbase", website="https://acme.io"),
        ProspectCandidate(name="", source="web_crawl", email="orphan@example.fr"),
    ]


class TestHelpers:
    """Tests for the column helpers."""

    def test_selected_column_names_keep_order(self):
        assert selected_column_names({"phone": True, "name": True, "email": False}) == ["phone", "name"]

    def test_build_prospect_data(self):
        """Test selected fields, empty strings and category default."""
        prospect = ProspectCandidate(name="Acme", source="crunchbase", website="https://acme.io")
        data = build_prospect_data(prospect, ["name", "email", "website", "category"], "Technologie & IT")
        assert data == {
            "name": "Acme",
            "email": "",
            "website": "https://acme.io",
            "category": "Technologie & IT",
        }


class TestCreateFromPreview:
    """Tests for create_from_preview."""

    def test_creates_list_columns_and_rows(self, repo, db_session, prospects):
        """Test the full import write."""
        list_id, count = repo.create_from_preview(
            list_name="Dentistes Lyon",
            industry="Santé & Médical",
            location="Lyon",
            selected_columns={"name": True, "phone": True, "email": True, "address": False},
            prospects=prospects,
            created_by="user-1",
        )

        assert count == 2
        prospect_list = repo.get(list_id)
        assert prospect_list.name == "Dentistes Lyon"
        assert prospect_list.description == "Liste générée automatiquement pour Santé & Médical à Lyon"
        assert prospect_list.status == "active"
        assert prospect_list.created_by == "user-1"

        columns = prospect_list.columns
        assert [c.name for c in columns] == ["name", "phone", "email"]
        assert [c.display_order for c in columns] == [1, 2, 3]
        assert [c.column_type for c in columns] == ["text", "phone", "email"]
        assert [c.is_phone for c in columns] == [False, True, False]

        assert repo.count_prospects(list_id) == 2
        rows = db_session.query(ProspectORM).filter(ProspectORM.list_id == list_id).all()
        assert all(row.status == "nouveau" for row in rows)
        data = sorted((row.data for row in rows), key=lambda d: d["name"])
        assert data[0] == {"name": "Acme Analytics", "phone": "", "email": ""}
        assert data[1]["email"] == "contact@dentaire-moderne.fr"

    def test_empty_selection(self, repo, prospects):
        """Test that no selected columns gives empty rows."""
        list_id, count = repo.create_from_preview(
            list_name="Vide",
            industry="Immobilier",
            location="Lyon",
            selected_columns={},
            prospects=prospects,
        )
        assert count == 2
        assert repo.get(list_id).columns == []

    def test_rolls_back_on_failure(self, repo, db_session, prospects, monkeypatch):
        """Test that nothing is written when the commit fails."""

        def fail():
            raise RuntimeError("db down")

        monkeypatch.setattr(db_session, "commit", fail)
        with pytest.raises(RuntimeError):
            repo.create_from_preview(
                list_name="Échec",
                industry="Immobilier",
                location="Lyon",
                selected_columns={"name": True},
                prospects=prospects,
            )

        assert db_session.query(ProspectListORM).count() == 0
        assert db_session.query(ProspectColumnORM).count() == 0

    def test_get_unknown_list(self, repo):
        assert repo.get("list_missing") is None
