"""Helpers shared by the resource repositories."""
from sqlalchemy import func, select
from ..errors import NotFoundError
from ..models import db


def paginate(statement, limit, offset, serialize):
    """Run ``statement`` with limit/offset and return items plus pagination metadata."""
    total = db.session.execute(select(func.count()).select_from(statement.order_by(None).subquery())).scalar()
    rows = db.session.execute(statement.limit(limit).offset(offset)).scalars().all()
    return {
        'items': [serialize(row) for row in rows],
        'pagination': {
            'total': total,
            'limit': limit,
            'offset': offset,
            'hasMore': offset + len(rows) < total,
        },
    }


def require(model, resource_id, label):
    """Load a referenced row or raise NotFoundError naming it."""
    if resource_id is None:
        return None
    row = db.session.get(model, resource_id)
    if row is None:
        raise NotFoundError(f"{label} not found")
    return row


def apply_changes(row, data):
    for key, value in data.items():
        setattr(row, key, value)
    return row
