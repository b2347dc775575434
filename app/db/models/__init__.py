from app.db.models.prospect_list import ProspectColumnORM, ProspectListORM, ProspectORM

__all__ = [
    "ProspectListORM",
    "ProspectColumnORM",
    "ProspectORM",
]
