# Overview: Pytest coverage for accounts, products, tier pricing, stock and health endpoints.

import pytest


class TestAccountEndpoints:

    def test_register_and_login(self, client, db_session):
        resp = client.post("/auth/register", json={
            "name": "Meera",
            "email": "Meera@Example.com",
            "password": "secret123",
            "user_type": "Retailer",
        })
        assert resp.status_code == 201
        user = resp.get_json()["user"]
        assert user["email"] == "meera@example.com"
        assert "password_hash" not in user

        resp = client.post("/auth/login", json={"email": "meera@example.com", "password": "secret123"})
        assert resp.status_code == 200
        assert resp.get_json()["user"]["user_type"] == "Retailer"

        resp = client.post("/auth/login", json={"email": "meera@example.com", "password": "wrong1234"})
        assert resp.status_code == 401
        assert resp.get_json()["message"] == "Invalid email or password"

    def test_register_rejects_weak_password_and_duplicates(self, client, db_session, customer):
        resp = client.post("/auth/register", json={
            "name": "A", "email": "a@example.com", "password": "short", "user_type": "Customer",
        })
        assert resp.status_code == 400

        resp = client.post("/auth/register", json={
            "name": "Dup", "email": customer.email, "password": "secret123", "user_type": "Customer",
        })
        assert resp.status_code == 409
        assert resp.get_json()["message"] == "Email already exists"

    def test_unknown_tier(self, client, db_session):
        resp = client.post("/auth/register", json={
            "name": "A", "email": "a@example.com", "password": "secret123", "user_type": "Wholesale",
        })
        assert resp.status_code == 400

    def test_get_user(self, client, db_session, customer):
        assert client.get(f"/auth/user/{customer.id}").get_json()["user"]["email"] == customer.email
        assert client.get("/auth/user/99999").status_code == 404

    @pytest.mark.parametrize("field, value", [("email", 5), ("name", ["Meera"]), ("phone", {"n": 1})])
    def test_register_rejects_non_text_fields(self, client, db_session, field, value):
        body = {"name": "Meera", "email": "meera@example.com", "password": "secret123", "user_type": "Customer"}
        body[field] = value

        resp = client.post("/auth/register", json=body)

        assert resp.status_code == 400
        assert resp.get_json()["message"] == f"{field} must be a string"

    def test_update_profile(self, client, db_session, customer, retailer):
        resp = client.put(f"/auth/user/{customer.id}", json={"name": "Asha K", "address": "4 Hill Street"})
        assert resp.status_code == 200
        user = resp.get_json()["user"]
        assert user["name"] == "Asha K"
        assert user["email"] == customer.email

        resp = client.put(f"/auth/user/{customer.id}", json={"email": retailer.email})
        assert resp.status_code == 409
        assert resp.get_json()["message"] == "Email already exists"

        assert client.put(f"/auth/user/{customer.id}", json={"email": 5}).status_code == 400
        assert client.put("/auth/user/99999", json={"name": "Nobody"}).status_code == 404

    def test_change_password(self, client, db_session):
        user_id = client.post("/auth/register", json={
            "name": "Meera", "email": "meera@example.com", "password": "secret123", "user_type": "Customer",
        }).get_json()["user"]["user_id"]

        resp = client.put("/auth/change-password", json={"user_id": user_id, "old_password": "secret123"})
        assert resp.status_code == 400
        assert resp.get_json()["message"] == "All fields are required"

        resp = client.put("/auth/change-password", json={
            "user_id": user_id, "old_password": "wrong1234", "new_password": "fresh4567",
        })
        assert resp.status_code == 400
        assert resp.get_json()["message"] == "Old password is incorrect"

        resp = client.put("/auth/change-password", json={
            "user_id": 99999, "old_password": "secret123", "new_password": "fresh4567",
        })
        assert resp.status_code == 404

        resp = client.put("/auth/change-password", json={
            "user_id": user_id, "old_password": "secret123", "new_password": "fresh4567",
        })
        assert resp.status_code == 200
        assert resp.get_json()["message"] == "Password changed successfully"

        login = {"email": "meera@example.com", "password": "fresh4567"}
        assert client.post("/auth/login", json=login).status_code == 200
        login["password"] = "secret123"
        assert client.post("/auth/login", json=login).status_code == 401


class TestProductEndpoints:

    def test_create_with_stock_and_prices(self, client, db_session):
        resp = client.post("/products", json={
            "name": "Linen Shirt",
            "sizes": [{"size": "S", "quantity": 3}, {"size": "M", "quantity": 5}],
            "prices": [
                {"size": "S", "user_type": "Customer", "price": "1200.00"},
                {"size": "M", "user_type": "Customer", "price": "1250.50"},
            ],
        })

        assert resp.status_code == 201
        product = resp.get_json()["product"]
        assert {row["size"]: row["available"] for row in product["stock"]} == {"S": 3, "M": 5}
        assert sorted(p["price"] for p in product["pricing"]) == ["1200.00", "1250.50"]

        fetched = client.get(f"/products/{product['product_id']}").get_json()["product"]
        assert fetched["name"] == "Linen Shirt"

    def test_invalid_price_rejects_whole_product(self, client, db_session):
        resp = client.post("/products", json={
            "name": "Broken",
            "sizes": [{"size": "S", "quantity": 3}],
            "prices": [{"size": "S", "user_type": "Customer", "price": "1.999"}],
        })
        assert resp.status_code == 400

    def test_missing_product(self, client, db_session):
        assert client.get("/products/99999").status_code == 404


class TestPricingEndpoints:

    def test_upsert_replaces(self, client, db_session, product):
        body = {"product_id": product.id, "size": "L", "user_type": "Customer", "price": "300.00"}
        assert client.post("/product-pricing", json=body).status_code == 201

        body["price"] = "310.00"
        assert client.post("/product-pricing", json=body).status_code == 201

        pricing = client.get(f"/product-pricing/{product.id}?user_type=Customer").get_json()["pricing"]
        assert {p["size"]: p["price"] for p in pricing} == {"L": "310.00", "M": "250.00"}

    def test_update_and_delete(self, client, db_session, product):
        price_id = client.get(f"/product-pricing/{product.id}").get_json()["pricing"][0]["price_id"]

        resp = client.put(f"/product-pricing/{price_id}", json={"price": "99.99"})
        assert resp.status_code == 200
        assert resp.get_json()["pricing"]["price_cents"] == 9999

        assert client.delete(f"/product-pricing/{price_id}").status_code == 200
        assert client.delete(f"/product-pricing/{price_id}").status_code == 404

    def test_validation(self, client, db_session, product):
        assert client.post("/product-pricing", json={"product_id": product.id}).status_code == 400
        assert client.post("/product-pricing", json={
            "product_id": product.id, "size": "M", "user_type": "Customer", "price": "-1",
        }).status_code == 400
        assert client.post("/product-pricing", json={
            "product_id": product.id, "size": "M", "user_type": "Customer", "price": "1e999999",
        }).status_code == 400
        assert client.get("/product-pricing/99999").status_code == 404


class TestStockEndpoints:

    def test_intake_and_write_off(self, client, db_session, product):
        resp = client.post("/stock/product-stock", json={
            "product_id": product.id, "size": "M", "quantity": 5, "stock_type": "IN",
        })
        assert resp.status_code == 201
        assert resp.get_json()["stock"]["stock_type"] == "IN"

        resp = client.post("/stock/product-stock", json={
            "product_id": product.id, "size": "M", "quantity": 16, "stock_type": "OUT",
        })
        assert resp.status_code == 409

        data = client.get(f"/stock/product-stock/{product.id}").get_json()
        assert len(data["stock"]) == 2
        assert data["summary"][0]["available"] == 15

    def test_validation(self, client, db_session, product):
        assert client.post("/stock/product-stock", json={"product_id": product.id}).status_code == 400
        assert client.post("/stock/product-stock", json={
            "product_id": product.id, "size": "M", "quantity": 1, "stock_type": "SIDEWAYS",
        }).status_code == 400
        assert client.post("/stock/product-stock", json={
            "product_id": 99999, "size": "M", "quantity": 1, "stock_type": "IN",
        }).status_code == 404

    def test_non_ascii_digit_quantity(self, client, db_session, product):
        resp = client.post("/stock/product-stock", json={
            "product_id": product.id, "size": "M", "quantity": "²", "stock_type": "IN",
        })
        assert resp.status_code == 400
        assert resp.get_json()["message"] == "quantity must be a positive integer"

    def test_size_longer_than_column(self, client, db_session, product):
        resp = client.post("/stock/product-stock", json={
            "product_id": product.id, "size": "X" * 17, "quantity": 1, "stock_type": "IN",
        })
        assert resp.status_code == 400
        assert resp.get_json()["message"] == "size exceeds max length 16"

    def test_movements_cannot_be_edited(self, client, db_session, product):
        assert client.put(f"/stock/product-stock/{product.id}", json={}).status_code == 405
        assert client.delete(f"/stock/product-stock/{product.id}").status_code == 405


class TestHealth:

    def test_health(self, client, db_session):
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.get_json()["checks"]["database"]["status"] == "healthy"
