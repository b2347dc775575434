import uuid

from sqlalchemy.orm import Session

from app.db.models.prospect_list import ProspectColumnORM, ProspectListORM, ProspectORM
from app.models import ProspectCandidate

# Column type per prospect field; unknown fields are plain text
COLUMN_TYPES: dict[str, str] = {
    "name": "text",
    "email": "email",
    "phone": "phone",
    "address": "text",
    "website": "text",
    "description": "text",
    "category": "text",
}

PROSPECT_STATUS_NEW = "nouveau"


def _new_id(prefix: str) -> str:
    return f"{prefix}_{uuid.uuid4().hex[:12]}"


def selected_column_names(selected_columns: dict[str, bool]) -> list[str]:
    """Selected column names, in the order the caller listed them."""
    return [name for name, selected in selected_columns.items() if selected]


def build_prospect_data(
    prospect: ProspectCandidate, columns: list[str], industry: str
) -> dict[str, str]:
    """Copy the selected fields of a prospect; missing values become ""."""
    data: dict[str, str] = {}
    for column in columns:
        if column == "name":
            data[column] = prospect.name
        elif column == "category":
            data[column] = prospect.category or industry
        else:
            data[column] = getattr(prospect, column, None) or ""
    return data


class ProspectListRepositorySQLAlchemy:
    def __init__(self, db: Session):
        self.db = db

    def get(self, list_id: str) -> ProspectListORM | None:
        return self.db.get(ProspectListORM, list_id)

    def count_prospects(self, list_id: str) -> int:
        return self.db.query(ProspectORM).filter(ProspectORM.list_id == list_id).count()

    def create_from_preview(
        self,
        list_name: str,
        industry: str,
        location: str,
        selected_columns: dict[str, bool],
        prospects: list[ProspectCandidate],
        created_by: str | None = None,
    ) -> tuple[str, int]:
        """Create a list, its columns and one row per named prospect.

        Everything is written in one transaction; nothing is kept if any
        insert fails.

        Returns:
            The new list id and the number of prospects written.
        """
        columns = selected_column_names(selected_columns)
        named = [p for p in prospects if p.name]

        prospect_list = ProspectListORM(
            id=_new_id("list"),
            name=list_name,
            description=f"Liste générée automatiquement pour {industry} à {location}",
            created_by=created_by,
        )
        prospect_list.columns = [
            ProspectColumnORM(
                id=_new_id("col"),
                name=column,
                column_type=COLUMN_TYPES.get(column, "text"),
                is_phone=column == "phone",
                display_order=index,
            )
            for index, column in enumerate(columns, start=1)
        ]
        prospect_list.prospects = [
            ProspectORM(
                id=_new_id("prospect"),
                data=build_prospect_data(p, columns, industry),
                status=PROSPECT_STATUS_NEW,
                comment="",
                created_by=created_by,
            )
            for p in named
        ]

        try:
            self.db.add(prospect_list)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        return prospect_list.id, len(named)
