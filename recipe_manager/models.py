from sqlalchemy import Column, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import relationship

from .db import Base


class Category(Base):
    __tablename__ = "categories"
    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), unique=True, index=True, nullable=False)


class Ingredient(Base):
    __tablename__ = "ingredients"
    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(200), index=True, nullable=False)
    presentation = Column(String(200), nullable=False, default="")
    purchase_price = Column(Numeric(10, 2), nullable=False, default=0)
    category_id = Column(Integer, ForeignKey("categories.id"), nullable=True)
    # Suppliers live outside this application; only the reference is kept
    supplier_id = Column(Integer, nullable=True)
    image = Column(String(255), nullable=True)  # file name under uploads/

    category = relationship("Category", lazy="joined")

    @property
    def category_name(self):
        return self.category.name if self.category else None


class Recipe(Base):
    __tablename__ = "recipes"
    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(200), index=True, nullable=False)
    description = Column(Text, nullable=False, default="")


class RecipeIngredient(Base):
    __tablename__ = "recipe_ingredients"
    recipe_id = Column(Integer, ForeignKey("recipes.id"), primary_key=True)
    ingredient_id = Column(Integer, ForeignKey("ingredients.id"), primary_key=True)
    quantity_used = Column(Numeric(10, 2), nullable=False, default=0)
    cost_of_use = Column(Numeric(10, 2), nullable=False, default=0)


class Menu(Base):
    __tablename__ = "menus"
    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(200), unique=True, index=True, nullable=False)
