"""
Frame-order templates — reusable item lists for itemized orders.

TemplateStore is the read interface the pricing side depends on;
SqlTemplateStore backs it with the frame_order_templates table and also
carries the write operations the HTTP layer needs. Templates are scoped
per tenant (user_id).

Template dict contract:
    {id, name, description, items: [...], default_edges: {left, right, top, bottom}}
"""

import logging
from abc import ABC, abstractmethod

from sqlalchemy.orm import Session

from . import models
from .calculators.line_items import parse_item_type

logger = logging.getLogger(__name__)

EDGE_KEYS = ("left", "right", "top", "bottom")


def template_to_dict(template: models.FrameOrderTemplate) -> dict:
    return {
        "id": template.id,
        "name": template.name,
        "description": template.description,
        "items": list(template.items or []),
        "default_edges": dict(template.default_passepartout_edges or {}),
        "created_at": template.created_at.isoformat() if template.created_at else None,
    }


def clean_template_items(items: list) -> list:
    """Keep only what a template needs. Raises ValueError for unknown item types."""
    cleaned = []
    for item in items or []:
        item_type = parse_item_type(item.get("type"))
        cleaned.append({
            "type": item_type.value,
            "item_id": item.get("item_id"),
            "name": item.get("name"),
            "sku": item.get("sku"),
            "quantity": item.get("quantity"),
            "unit": item.get("unit"),
            "unit_price": item.get("unit_price"),
            "metadata": dict(item.get("metadata") or {}),
        })
    return cleaned


def clean_edges(edges: dict) -> dict:
    return {k: (edges or {}).get(k) for k in EDGE_KEYS if (edges or {}).get(k) is not None}


class TemplateStore(ABC):
    """Read-only view of the templates available to one tenant."""

    @abstractmethod
    def list_templates(self) -> list:
        pass

    @abstractmethod
    def get_template(self, template_id: int) -> dict:
        """Template dict, or None when it does not exist for this tenant."""
        pass


class SqlTemplateStore(TemplateStore):

    def __init__(self, db: Session, user_id: int):
        self.db = db
        self.user_id = user_id

    def _query(self):
        return self.db.query(models.FrameOrderTemplate).filter(
            models.FrameOrderTemplate.user_id == self.user_id
        )

    def _get_row(self, template_id: int):
        return self._query().filter(models.FrameOrderTemplate.id == template_id).first()

    def list_templates(self) -> list:
        rows = self._query().order_by(models.FrameOrderTemplate.name).all()
        return [template_to_dict(t) for t in rows]

    def get_template(self, template_id: int) -> dict:
        row = self._get_row(template_id)
        return template_to_dict(row) if row else None

    def save_template(self, name: str, items: list, description: str = None,
                      default_edges: dict = None) -> dict:
        """Add a template. Flushes only, the caller owns the transaction."""
        if not name or not name.strip():
            raise ValueError("Template name is required")
        row = models.FrameOrderTemplate(
            user_id=self.user_id,
            name=name.strip(),
            description=description,
            items=clean_template_items(items),
            default_passepartout_edges=clean_edges(default_edges),
        )
        self.db.add(row)
        self.db.flush()
        logger.info("Saved template %d '%s' for user %d", row.id, row.name, self.user_id)
        return template_to_dict(row)

    def update_template(self, template_id: int, updates: dict) -> dict:
        row = self._get_row(template_id)
        if not row:
            return None
        if updates.get("name") is not None:
            if not updates["name"].strip():
                raise ValueError("Template name is required")
            row.name = updates["name"].strip()
        if "description" in updates:
            row.description = updates["description"]
        if updates.get("items") is not None:
            row.items = clean_template_items(updates["items"])
        if updates.get("default_edges") is not None:
            row.default_passepartout_edges = clean_edges(updates["default_edges"])
        self.db.flush()
        return template_to_dict(row)

    def delete_template(self, template_id: int) -> bool:
        row = self._get_row(template_id)
        if not row:
            return False
        self.db.delete(row)
        self.db.flush()
        return True
