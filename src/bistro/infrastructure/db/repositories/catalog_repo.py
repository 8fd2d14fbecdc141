from __future__ import annotations

from sqlalchemy import Engine, delete, select, update
from sqlalchemy.orm import Session, joinedload

from bistro.application.ports.repositories import CatalogRepository
from bistro.domain.common.ids import CategoryId, ProductId
from bistro.domain.common.money import Money
from bistro.domain.menu.entities import Category, Product, ProductStatus
from bistro.infrastructure.db.models.catalog import CategoryModel, ProductModel
from bistro.infrastructure.db.session import get_engine


class SqlAlchemyCatalogRepository(CatalogRepository):
    def __init__(self, engine: Engine | None = None) -> None:
        self._engine = engine or get_engine()

    def list_categories(self) -> list[Category]:
        statement = select(CategoryModel).order_by(CategoryModel.name, CategoryModel.id)
        with Session(self._engine) as session:
            models = session.execute(statement).scalars().all()
        return [_category_to_domain(model) for model in models]

    def get_category(self, category_id: CategoryId) -> Category | None:
        with Session(self._engine) as session:
            model = session.get(CategoryModel, str(category_id))
        return _category_to_domain(model) if model is not None else None

    def add_category(self, category: Category) -> None:
        with Session(self._engine) as session:
            session.add(
                CategoryModel(id=str(category.category_id), name=category.name, icon=category.icon)
            )
            session.commit()

    def update_category(self, category: Category) -> None:
        statement = (
            update(CategoryModel)
            .where(CategoryModel.id == str(category.category_id))
            .values(name=category.name, icon=category.icon)
        )
        with Session(self._engine) as session:
            session.execute(statement)
            session.commit()

    def delete_category(self, category_id: CategoryId) -> bool:
        with Session(self._engine) as session:
            # SQLite does not enforce ON DELETE SET NULL unless foreign keys are enabled.
            session.execute(
                update(ProductModel)
                .where(ProductModel.category_id == str(category_id))
                .values(category_id=None)
            )
            result = session.execute(
                delete(CategoryModel).where(CategoryModel.id == str(category_id))
            )
            session.commit()
        return result.rowcount == 1

    def list_products(self, active_only: bool = False) -> list[Product]:
        statement = select(ProductModel).options(joinedload(ProductModel.category))
        if active_only:
            statement = statement.where(ProductModel.status == ProductStatus.ACTIVE.value)
        statement = statement.order_by(ProductModel.name, ProductModel.id)
        with Session(self._engine) as session:
            models = session.execute(statement).scalars().all()
            return [_product_to_domain(model) for model in models]

    def get_product(self, product_id: ProductId) -> Product | None:
        statement = (
            select(ProductModel)
            .options(joinedload(ProductModel.category))
            .where(ProductModel.id == str(product_id))
        )
        with Session(self._engine) as session:
            model = session.execute(statement).scalar_one_or_none()
            return _product_to_domain(model) if model is not None else None

    def get_products(self, product_ids: list[ProductId]) -> list[Product]:
        if not product_ids:
            return []
        statement = (
            select(ProductModel)
            .options(joinedload(ProductModel.category))
            .where(ProductModel.id.in_([str(product_id) for product_id in product_ids]))
        )
        with Session(self._engine) as session:
            models = session.execute(statement).scalars().all()
            return [_product_to_domain(model) for model in models]

    def add_product(self, product: Product) -> None:
        with Session(self._engine) as session:
            session.add(
                ProductModel(
                    id=str(product.product_id),
                    name=product.name,
                    price_cents=product.price.amount_cents,
                    currency=product.price.currency,
                    stock_quantity=product.stock_quantity,
                    status=product.status.value,
                    category_id=str(product.category_id) if product.category_id else None,
                )
            )
            session.commit()

    def update_product(self, product: Product) -> None:
        statement = (
            update(ProductModel)
            .where(ProductModel.id == str(product.product_id))
            .values(
                name=product.name,
                price_cents=product.price.amount_cents,
                currency=product.price.currency,
                status=product.status.value,
                category_id=str(product.category_id) if product.category_id else None,
            )
        )
        with Session(self._engine) as session:
            session.execute(statement)
            session.commit()

    def delete_product(self, product_id: ProductId) -> bool:
        with Session(self._engine) as session:
            result = session.execute(delete(ProductModel).where(ProductModel.id == str(product_id)))
            session.commit()
        return result.rowcount == 1

    def apply_stock_deltas(self, deltas: dict[ProductId, int]) -> None:
        with Session(self._engine) as session:
            for product_id, delta in deltas.items():
                session.execute(
                    update(ProductModel)
                    .where(ProductModel.id == str(product_id))
                    .values(stock_quantity=ProductModel.stock_quantity + delta)
                )
            session.commit()


def _category_to_domain(model: CategoryModel) -> Category:
    return Category(category_id=CategoryId(model.id), name=model.name, icon=model.icon)


def _product_to_domain(model: ProductModel) -> Product:
    return Product(
        product_id=ProductId(model.id),
        name=model.name,
        price=Money(amount_cents=model.price_cents, currency=model.currency),
        stock_quantity=model.stock_quantity,
        status=ProductStatus(model.status),
        category_id=CategoryId(model.category_id) if model.category_id else None,
        category_name=model.category.name if model.category is not None else None,
    )
