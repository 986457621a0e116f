# Overview: Pytest coverage for cart and favorites endpoints.


class TestCartEndpoints:

    def _add(self, client, user, product, size="M", quantity=1):
        return client.post("/user-actions/cart", json={
            "user_id": user.id, "product_id": product.id, "size": size, "quantity": quantity,
        })

    def test_add_accumulates(self, client, db_session, customer, product):
        assert self._add(client, customer, product, quantity=1).status_code == 201
        resp = self._add(client, customer, product, quantity=2)

        assert resp.get_json()["cart"]["quantity"] == 3
        cart = client.get(f"/user-actions/cart/{customer.id}").get_json()["cart"]
        assert len(cart) == 1

    def test_cart_shows_tier_price(self, client, db_session, customer, retailer, product):
        self._add(client, customer, product, quantity=2)
        self._add(client, retailer, product, quantity=2)

        customer_cart = client.get(f"/user-actions/cart/{customer.id}").get_json()["cart"]
        retailer_cart = client.get(f"/user-actions/cart/{retailer.id}").get_json()["cart"]

        assert customer_cart[0]["price"] == "250.00"
        assert customer_cart[0]["line_total"] == "500.00"
        assert retailer_cart[0]["price"] == "200.00"
        assert customer_cart[0]["product_name"] == "Cotton Tee"

    def test_unpriced_line_listed_without_price(self, client, db_session, customer, unpriced_product):
        self._add(client, customer, unpriced_product, size="OS")

        cart = client.get(f"/user-actions/cart/{customer.id}").get_json()["cart"]
        assert cart[0]["price"] is None

    def test_add_validation(self, client, db_session, customer, product):
        assert self._add(client, customer, product, quantity=0).status_code == 400
        assert client.post("/user-actions/cart", json={"user_id": customer.id}).status_code == 400
        assert client.post("/user-actions/cart", json={
            "user_id": customer.id, "product_id": 99999, "size": "M", "quantity": 1,
        }).status_code == 404

    def test_update_quantity_checks_stock(self, client, db_session, customer, product):
        cart_id = self._add(client, customer, product).get_json()["cart"]["cart_id"]

        resp = client.put(f"/user-actions/cart/{cart_id}", json={"quantity": 4})
        assert resp.status_code == 200
        assert resp.get_json()["cart"]["quantity"] == 4

        resp = client.put(f"/user-actions/cart/{cart_id}", json={"quantity": 11})
        assert resp.status_code == 400
        assert resp.get_json()["message"] == "Only 10 items are available in stock"

        resp = client.put(f"/user-actions/cart/{cart_id}", json={"quantity": 0})
        assert resp.get_json()["message"] == "Quantity must be greater than zero"

    def test_remove(self, client, db_session, customer, product):
        cart_id = self._add(client, customer, product).get_json()["cart"]["cart_id"]

        assert client.delete(f"/user-actions/cart/{cart_id}").status_code == 200
        assert client.delete(f"/user-actions/cart/{cart_id}").status_code == 404


class TestFavoriteEndpoints:

    def test_add_is_idempotent(self, client, db_session, customer, product):
        body = {"user_id": customer.id, "product_id": product.id}

        assert client.post("/user-actions/favorites", json=body).status_code == 201
        assert client.post("/user-actions/favorites", json=body).status_code == 200

        favorites = client.get(f"/user-actions/favorites/{customer.id}").get_json()["favorites"]
        assert len(favorites) == 1
        assert favorites[0]["prices"] == [{"size": "M", "price": "250.00", "price_cents": 25000}]

    def test_remove(self, client, db_session, customer, product):
        fav_id = client.post("/user-actions/favorites", json={
            "user_id": customer.id, "product_id": product.id,
        }).get_json()["favorite"]["favorite_id"]

        assert client.delete(f"/user-actions/favorites/{fav_id}").status_code == 200
        assert client.delete(f"/user-actions/favorites/{fav_id}").status_code == 404
