"""At-most-one boolean flags across sibling rows.

Used for ``ProductImage.is_main`` (per product) and ``Currency.is_default`` /
``Currency.is_base_currency`` (per store). Each pair is also backed by a
partial unique index, so a writer that skips this helper fails with an
``IntegrityError`` instead of leaving two flagged rows.
"""

from libs.common.logging import get_logger
from libs.db.base import Base
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)


async def enforce_single_flag(
    db: AsyncSession,
    row: Base,
    *,
    group_attr: str,
    flag_attr: str,
) -> int:
    """Clear ``flag_attr`` on every sibling of ``row`` sharing ``group_attr``.

    Call before ``row`` is flushed with its flag set: the siblings are cleared
    first so the partial unique index never sees two flagged rows. Sibling
    rows are locked for the rest of the transaction. Returns how many rows
    were cleared.
    """
    model = type(row)
    group_column = getattr(model, group_attr)
    flag_column = getattr(model, flag_attr)
    group_value = getattr(row, group_attr)

    conditions = [group_column == group_value, flag_column.is_(True)]
    if row.id is not None:
        conditions.append(model.id != row.id)

    await db.execute(select(model.id).where(*conditions).with_for_update())
    result = await db.execute(
        update(model)
        .where(*conditions)
        .values({flag_attr: False})
        .execution_options(synchronize_session="fetch")
    )

    if result.rowcount:
        logger.info(
            "Cleared %s on %d %s row(s) for %s=%s",
            flag_attr,
            result.rowcount,
            model.__tablename__,
            group_attr,
            group_value,
        )
    return result.rowcount
