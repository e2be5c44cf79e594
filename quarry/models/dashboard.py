from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional

from sqlmodel import SQLModel, Field, Column, JSON

from .base import generate_entity_id, utcnow


class Card(SQLModel, table=True):
    """A saved question."""

    __tablename__ = "report_card"

    id: Optional[int] = Field(default=None, primary_key=True)
    entity_id: str = Field(default_factory=generate_entity_id, unique=True, index=True)
    name: str
    display: str = Field(default="table")
    dataset_query: Dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON))
    collection_id: Optional[int] = Field(default=None, foreign_key="collection.id", index=True)
    archived: bool = Field(default=False)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class Dashboard(SQLModel, table=True):
    __tablename__ = "report_dashboard"

    id: Optional[int] = Field(default=None, primary_key=True)
    entity_id: str = Field(default_factory=generate_entity_id, unique=True, index=True)
    name: str
    collection_id: Optional[int] = Field(default=None, foreign_key="collection.id", index=True)
    archived: bool = Field(default=False)
    created_at: datetime = Field(default_factory=utcnow)


class DashboardCard(SQLModel, table=True):
    """A card placed on a dashboard grid."""

    __tablename__ = "report_dashboardcard"

    id: Optional[int] = Field(default=None, primary_key=True)
    entity_id: str = Field(default_factory=generate_entity_id, unique=True, index=True)
    dashboard_id: int = Field(foreign_key="report_dashboard.id", index=True)
    card_id: Optional[int] = Field(default=None, foreign_key="report_card.id", index=True)
    row: int = Field(default=0)
    col: int = Field(default=0)
    size_x: int = Field(default=4)
    size_y: int = Field(default=4)


class DashboardCardSeries(SQLModel, table=True):
    """
    An extra card overlaid as a series on a dashboard card.

    `position` orders the series within their dashboard card.
    """

    __tablename__ = "dashboardcard_series"

    id: Optional[int] = Field(default=None, primary_key=True)
    dashboardcard_id: int = Field(foreign_key="report_dashboardcard.id", index=True)
    card_id: int = Field(foreign_key="report_card.id", index=True)
    position: int = Field(default=0)
