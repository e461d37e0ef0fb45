# foodmarket/data/seed.py
from decimal import Decimal

from sqlalchemy.orm import Session, sessionmaker

from foodmarket.data.models.category import CategoryModel
from foodmarket.data.models.food import FoodModel

CATEGORIES = ["Desayuno", "Almuerzo", "Cena", "Postre", "Bebida", "Snack"]

FOODS = [
    ("Sándwich de pollo", "Almuerzo", Decimal("15.50")),
    ("Ensalada fresca", "Cena", Decimal("12.00")),
    ("Jugo de naranja", "Bebida", Decimal("6.00")),
]


def seed_catalog(db: Session) -> int:
    # not forcing: only seed if empty
    if db.query(CategoryModel).first():
        return 0

    by_name = {}
    for name in CATEGORIES:
        category = CategoryModel(name=name)
        db.add(category)
        by_name[name] = category
    db.flush()

    for name, category, price in FOODS:
        db.add(FoodModel(name=name, category=category, category_id=by_name[category].id, price=price))

    db.commit()
    return len(FOODS)


def seed(session_factory: sessionmaker) -> int:
    db = session_factory()
    try:
        return seed_catalog(db)
    finally:
        db.close()
