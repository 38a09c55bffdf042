from typing import Any, Dict, Iterable, List, Optional, Union, get_args

from beanie import Document
from pydantic import BaseModel


def document_to_dict(doc: Document, exclude: Optional[Iterable[str]] = None) -> Dict[str, Any]:
    """JSON-ready dict of a document with `id` as a string"""
    skip = {"id", "revision_id"} | set(exclude or ())
    data = doc.model_dump(mode="json", exclude=skip)
    data["id"] = str(doc.id) if doc.id else None
    return data


def documents_to_list(docs: List[Document], exclude: Optional[Iterable[str]] = None) -> List[Dict[str, Any]]:
    return [document_to_dict(d, exclude) for d in docs]


def _accepts_none(model: type, field: str) -> bool:
    info = model.model_fields.get(field)
    if info is None:
        return False
    return info.annotation is type(None) or type(None) in get_args(info.annotation)


def field_updates(
    payload: BaseModel, target: Union[Document, type], exclude: Optional[Iterable[str]] = None
) -> Dict[str, Any]:
    """
    Fields the client actually sent, ready to be set on `target`.
    An explicit null only clears fields the document declares as optional;
    for required fields it is dropped.
    """
    model = target if isinstance(target, type) else type(target)
    updates = {}
    for field in payload.model_dump(exclude_unset=True, exclude=set(exclude or ())):
        value = getattr(payload, field)
        if value is None and not _accepts_none(model, field):
            continue
        updates[field] = value
    return updates


def paginate(total: int, page: int, limit: int) -> Dict[str, int]:
    return {
        "total": total,
        "page": page,
        "limit": limit,
        "total_pages": (total + limit - 1) // limit if limit else 0,
    }
