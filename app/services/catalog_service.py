"""Read-only catalog lookups used when pricing a checkout."""

from collections.abc import Iterable

from sqlalchemy import select
from sqlalchemy.orm import Session, joinedload

from app.models.catalog import Option, Product


def get_product(db: Session, product_id: int) -> Product | None:
    return db.get(Product, product_id)


def get_options(db: Session, option_ids: Iterable[int]) -> dict[int, Option]:
    """Fetch options with their groups keyed by id; unknown ids are absent."""
    ids = {int(option_id) for option_id in option_ids}
    if not ids:
        return {}
    rows = db.scalars(select(Option).options(joinedload(Option.group)).where(Option.id.in_(ids))).all()
    return {row.id: row for row in rows}
