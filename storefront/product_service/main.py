# storefront/product_service/main.py
import copy
from typing import Literal

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field

#dev catalogue, the real catalogue lives in its own service
CATEGORIES = {
    "peripherals": {"id": "peripherals", "name": "Peripherals", "isActive": True},
    "displays": {"id": "displays", "name": "Displays", "isActive": True},
}

PRODUCTS = {
    "1": {
        "id": "1",
        "name": "Keyboard",
        "price": 199.99,
        "isActive": True,
        "categories": ["peripherals"],
        "inventory": {"quantity": 25, "reserved": 2, "status": "in_stock"},
    },
    "2": {
        "id": "2",
        "name": "Mouse",
        "price": 49.50,
        "isActive": True,
        "categories": ["peripherals"],
        "inventory": {"quantity": 100, "reserved": 0, "status": "in_stock"},
    },
    "3": {
        "id": "3",
        "name": "Monitor",
        "price": 899.00,
        "isActive": True,
        "categories": ["displays"],
        "inventory": {"quantity": 4, "reserved": 1, "status": "in_stock"},
    },
    "4": {
        "id": "4",
        "name": "Trackball",
        "price": 79.00,
        "isActive": False,
        "categories": ["peripherals"],
        "inventory": {"quantity": 0, "reserved": 0, "status": "out_of_stock"},
    },
}


class InventoryUpdate(BaseModel):
    quantity: int | None = Field(None, ge=0)
    reserved: int | None = Field(None, ge=0)
    status: Literal["in_stock", "out_of_stock", "preorder", "discontinued"] | None = None


def create_product_app(products: dict | None = None, categories: dict | None = None) -> FastAPI:
    app = FastAPI(title="Product Service (dev mock)")
    catalogue = copy.deepcopy(PRODUCTS if products is None else products)
    category_index = copy.deepcopy(CATEGORIES if categories is None else categories)

    def _product(product_id: str) -> dict:
        product = catalogue.get(product_id)
        if not product:
            raise HTTPException(status_code=404, detail="Product not found")
        return product

    @app.get("/products/{product_id}")
    def get_product(product_id: str):
        return _product(product_id)

    @app.put("/products/{product_id}/inventory")
    def update_inventory(product_id: str, payload: InventoryUpdate):
        product = _product(product_id)
        inventory = product["inventory"]

        if payload.quantity is not None:
            inventory["quantity"] = payload.quantity
        if payload.reserved is not None:
            inventory["reserved"] = payload.reserved

        #status follows quantity unless set explicitly
        if payload.status is not None:
            inventory["status"] = payload.status
        else:
            inventory["status"] = "in_stock" if inventory["quantity"] > 0 else "out_of_stock"
        return product

    @app.get("/categories/{category_id}")
    def get_category(category_id: str):
        category = category_index.get(category_id)
        if not category:
            raise HTTPException(status_code=404, detail="Category not found")
        return category

    @app.get("/products/category/{category_id}")
    def get_products_by_category(category_id: str):
        if category_id not in category_index:
            raise HTTPException(status_code=404, detail="Category not found")
        return [
            p for p in catalogue.values()
            if category_id in p["categories"] and p["isActive"]
        ]

    return app


app = create_product_app()
