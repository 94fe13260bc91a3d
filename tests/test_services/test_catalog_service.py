"""
Tests for ProductService, CategoryService and BrandService
"""
from decimal import Decimal

import pytest

from storefront.core.errors import ConflictError, NotFoundError, ValidationFailed
from storefront.domain.catalog import (
    BrandCreate,
    CategoryCreate,
    CategoryUpdate,
    ProductCreate,
    ProductUpdate,
    ReorderItem,
)
from storefront.services import BrandService, CategoryService, ProductService


def product_payload(catalog, **overrides):
    values = {
        "name": "Galaxy Phone 12",
        "description": "A very good phone",
        "brand_id": catalog.brand.id,
        "category_id": catalog.child.id,
        "price": "100.00",
        "stock": 4,
        "sku": "GAL-12",
    }
    values.update(overrides)
    return ProductCreate(**values)


class TestProductService:

    def test_create_generates_slug_and_compare_price(self, db, catalog):
        product = ProductService(db).create(product_payload(catalog))

        assert product.slug == "galaxy-phone-12"
        assert product.compare_price == Decimal("120.00")
        assert product.is_active is True

    def test_explicit_compare_price_is_kept(self, db, catalog):
        product = ProductService(db).create(product_payload(catalog, compare_price="150.00"))

        assert product.compare_price == Decimal("150.00")

    def test_unknown_brand_or_category(self, db, catalog):
        service = ProductService(db)

        with pytest.raises(ValidationFailed, match="Invalid brand"):
            service.create(product_payload(catalog, brand_id=999))
        with pytest.raises(ValidationFailed, match="Invalid category"):
            service.create(product_payload(catalog, category_id=999))

    def test_duplicate_slug_and_sku(self, db, catalog):
        service = ProductService(db)
        service.create(product_payload(catalog))

        with pytest.raises(ConflictError):
            service.create(product_payload(catalog, sku="OTHER"))
        with pytest.raises(ConflictError):
            service.create(product_payload(catalog, name="Another phone"))

    def test_update_renames_slug(self, db, catalog):
        service = ProductService(db)
        product = service.create(product_payload(catalog))

        product = service.update(product.id, ProductUpdate(name="Galaxy Phone 13", price="110.00"))

        assert product.slug == "galaxy-phone-13"
        assert product.price == Decimal("110.00")

    def test_delete_is_soft(self, db, make_product):
        product = make_product()
        service = ProductService(db)

        service.delete(product.id)

        with pytest.raises(NotFoundError, match="Product not found"):
            service.get_active(str(product.id))
        assert service.get(product.id).deleted_at is not None

    def test_adjust_stock(self, db, make_product):
        product = make_product(stock=3)
        service = ProductService(db)

        assert service.adjust_stock(product.id, 5).stock == 8
        assert service.adjust_stock(product.id, -8).stock == 0
        with pytest.raises(ValidationFailed, match="Insufficient stock"):
            service.adjust_stock(product.id, -1)

    def test_view_counts(self, db, make_product):
        product = make_product(slug="counted")
        service = ProductService(db)

        service.view("counted")
        assert service.view(str(product.id)).views == 2

    def test_by_category_includes_descendants(self, db, catalog, make_product):
        in_child = make_product()
        in_root = make_product(category_id=catalog.root.id)

        products, total = ProductService(db).by_category(catalog.root.id)
        assert total == 2
        assert {p.id for p in products} == {in_child.id, in_root.id}

        products, total = ProductService(db).by_category(catalog.child.id)
        assert [p.id for p in products] == [in_child.id]


class TestCategoryService:

    def test_create_sets_level_and_path(self, db, catalog):
        service = CategoryService(db)

        android = service.create(CategoryCreate(name="Android Phones", parent_id=catalog.child.id))

        assert android.slug == "android-phones"
        assert android.level == 3
        assert service.path(android) == "electronics/phones/android-phones"
        assert [crumb["slug"] for crumb in service.breadcrumb(android)] == ["electronics", "phones", "android-phones"]

    def test_duplicate_name(self, db, catalog):
        with pytest.raises(ConflictError, match="Category with this name already exists"):
            CategoryService(db).create(CategoryCreate(name="Phones"))

    def test_unknown_parent(self, db, catalog):
        with pytest.raises(ValidationFailed, match="Parent category not found"):
            CategoryService(db).create(CategoryCreate(name="Orphans", parent_id=999))

    def test_moving_to_root_relevels_descendants(self, db, catalog):
        service = CategoryService(db)
        android = service.create(CategoryCreate(name="Android", parent_id=catalog.child.id))

        phones = service.update(catalog.child.id, CategoryUpdate(parent_id=None))
        db.refresh(android)

        assert phones.level == 1
        assert phones.parent_id is None
        assert android.level == 2

    def test_cannot_become_own_ancestor(self, db, catalog):
        service = CategoryService(db)

        with pytest.raises(ValidationFailed, match="Category cannot be its own ancestor"):
            service.update(catalog.root.id, CategoryUpdate(parent_id=catalog.child.id))
        with pytest.raises(ValidationFailed, match="Category cannot be its own ancestor"):
            service.update(catalog.root.id, CategoryUpdate(parent_id=catalog.root.id))

    def test_delete_with_subcategories(self, db, catalog):
        service = CategoryService(db)

        with pytest.raises(ValidationFailed, match="Cannot delete category with subcategories"):
            service.delete(catalog.root.id)

        service.delete(catalog.child.id)
        service.delete(catalog.root.id)
        with pytest.raises(NotFoundError):
            service.get("electronics")

    def test_tree_and_detail(self, db, catalog, make_product):
        make_product()
        service = CategoryService(db)

        tree = service.tree()
        detail = service.detail(service.get("phones"))

        assert [node["slug"] for node in tree] == ["electronics"]
        assert [child["slug"] for child in tree[0]["children"]] == ["phones"]
        assert detail["product_count"] == 1
        assert detail["path"] == "electronics/phones"
        assert detail["children"] == []

    def test_reorder(self, db, catalog):
        service = CategoryService(db)
        laptops = service.create(CategoryCreate(name="Laptops", parent_id=catalog.root.id))

        service.reorder([ReorderItem(id=laptops.id, order=2), ReorderItem(id=catalog.child.id, order=1)])

        children = service.detail(catalog.root)["children"]
        assert [child["slug"] for child in children] == ["phones", "laptops"]


class TestBrandService:

    def test_create_with_categories(self, db, catalog):
        brand = BrandService(db).create(BrandCreate(name="Globex Corp", category_ids=[catalog.root.id]))

        assert brand.slug == "globex-corp"
        assert [c.id for c in brand.categories] == [catalog.root.id]

    def test_delete_with_products(self, db, catalog, make_product):
        make_product()

        with pytest.raises(ValidationFailed, match="Cannot delete brand with associated products"):
            BrandService(db).delete(catalog.brand.id)

    def test_delete_without_products(self, db, catalog):
        service = BrandService(db)

        service.delete(catalog.brand.id)

        with pytest.raises(NotFoundError, match="Brand not found"):
            service.get("acme")
