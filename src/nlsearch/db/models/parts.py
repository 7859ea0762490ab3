from decimal import Decimal
from typing import List, Optional

from sqlalchemy import ForeignKey, Integer, Numeric, SmallInteger, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from nlsearch.db.base_class import Base


class Make(Base):
    __tablename__ = "Makes"

    make_id: Mapped[int] = mapped_column("MakeID", Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column("Name", String(100), nullable=False, unique=True)

    models: Mapped[List["Model"]] = relationship(back_populates="make")


class Model(Base):
    __tablename__ = "Models"

    model_id: Mapped[int] = mapped_column("ModelID", Integer, primary_key=True, autoincrement=True)
    make_id: Mapped[int] = mapped_column(
        "MakeID", ForeignKey("Makes.MakeID", ondelete="RESTRICT"), nullable=False
    )
    name: Mapped[str] = mapped_column("Name", String(100), nullable=False)
    year_from: Mapped[Optional[int]] = mapped_column("YearFrom", SmallInteger)
    year_to: Mapped[Optional[int]] = mapped_column("YearTo", SmallInteger)
    body_style: Mapped[Optional[str]] = mapped_column("BodyStyle", String(50))

    make: Mapped[Make] = relationship(back_populates="models")
    parts: Mapped[List["PartsInfo"]] = relationship(back_populates="model")

    __table_args__ = (
        UniqueConstraint("MakeID", "Name", "YearFrom", "YearTo", name="uq_models_make_name_years"),
    )


class PartsInfo(Base):
    __tablename__ = "PartsInfo"

    part_id: Mapped[int] = mapped_column("PartID", Integer, primary_key=True, autoincrement=True)
    model_id: Mapped[int] = mapped_column(
        "ModelID", ForeignKey("Models.ModelID", ondelete="RESTRICT"), nullable=False
    )
    part_number: Mapped[str] = mapped_column("PartNumber", String(50), nullable=False)
    part_name: Mapped[str] = mapped_column("PartName", String(100), nullable=False)
    description: Mapped[Optional[str]] = mapped_column("Description", String(500))
    category: Mapped[Optional[str]] = mapped_column("Category", String(50))
    price: Mapped[Optional[Decimal]] = mapped_column("Price", Numeric(10, 2))

    model: Mapped[Model] = relationship(back_populates="parts")

    __table_args__ = (
        UniqueConstraint("ModelID", "PartNumber", name="uq_partsinfo_model_partnumber"),
    )
