import logging
from typing import Iterable, List, Optional, Sequence, Type

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from planipeda.errors import ConflictError, InvalidDataError, NotFoundError

logger = logging.getLogger(__name__)


def unique_ids(ids: Optional[Iterable[int]]) -> List[int]:
    """Drop None and duplicates, keeping the order of first occurrence."""
    seen = set()
    result = []
    for value in ids or []:
        if value is None or value in seen:
            continue
        seen.add(value)
        result.append(value)
    return result


def require_text(value: Optional[str], message: str) -> str:
    """Trimmed text, or InvalidDataError(message) when missing or blank."""
    text = (value or "").strip()
    if not text:
        raise InvalidDataError(message)
    return text


async def get_or_404(db: AsyncSession, model, object_id: int, label: str):
    obj = await db.get(model, object_id)
    if obj is None:
        raise NotFoundError(f"{label} {object_id} introuvable.")
    return obj


async def ensure_exist(db: AsyncSession, model, ids: Sequence[int], label: str) -> None:
    """Raise NotFoundError naming the missing ids when some rows do not exist."""
    if not ids:
        return
    result = await db.execute(select(model.id).where(model.id.in_(ids)))
    found = set(result.scalars().all())
    missing = [i for i in ids if i not in found]
    if missing:
        raise NotFoundError(f"{label} introuvable(s) : {', '.join(str(i) for i in missing)}.")


async def count_where(db: AsyncSession, model, *criteria) -> int:
    result = await db.execute(select(func.count()).select_from(model).where(*criteria))
    return result.scalar_one()


async def ensure_no_children(db: AsyncSession, label: str, children: Sequence[tuple]) -> None:
    """children: (model, criterion, child label). ConflictError when any child row remains."""
    for model, criterion, child_label in children:
        count = await count_where(db, model, criterion)
        if count:
            raise ConflictError(f"Impossible de supprimer {label} : {count} {child_label} rattaché(s).")


async def sync_links(
    db: AsyncSession,
    link_model: Type,
    owner_column: str,
    owner_id: int,
    target_column: str,
    target_ids: Iterable[int],
    extra: Optional[dict] = None,
) -> List[int]:
    """
    Replace every link row of owner_id: delete them all, then insert one row per
    distinct target id. `extra` maps target id -> additional column values.
    Runs inside the caller's transaction; nothing is committed here.
    """
    ids = unique_ids(target_ids)
    await db.execute(delete(link_model).where(getattr(link_model, owner_column) == owner_id))

    for target_id in ids:
        values = {owner_column: owner_id, target_column: target_id}
        if extra and target_id in extra:
            values.update(extra[target_id])
        db.add(link_model(**values))

    logger.debug("Synced %s for %s=%s: %s", link_model.__tablename__, owner_column, owner_id, ids)
    return ids


async def linked_ids(db: AsyncSession, link_model: Type, owner_column: str, owner_id: int, target_column: str) -> List[int]:
    result = await db.execute(
        select(getattr(link_model, target_column))
        .where(getattr(link_model, owner_column) == owner_id)
        .order_by(link_model.id)
    )
    return list(result.scalars().all())


def ensure_no_duplicates(pairs: Iterable[tuple], message: str) -> None:
    seen = set()
    for pair in pairs:
        if pair in seen:
            raise InvalidDataError(message)
        seen.add(pair)
