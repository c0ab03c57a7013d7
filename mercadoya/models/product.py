from sqlalchemy import Column, Integer, Numeric, String, Text
from ..database import Base


class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    price = Column(Numeric(10, 2), nullable=False)
    barcode = Column(String(100), nullable=True, index=True)
    description = Column(Text, nullable=True)
    image = Column(String(500), nullable=True)  # путь или URL картинки
