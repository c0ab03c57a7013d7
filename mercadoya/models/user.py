from sqlalchemy import Column, Integer, String
from sqlalchemy.orm import relationship
from ..database import Base


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False, unique=True)
    password = Column(String(255), nullable=False)  # bcrypt hash
    direccion = Column(String(255), nullable=False)
    role = Column(String(20), nullable=False, default="user")

    orders = relationship("Order", back_populates="user")
