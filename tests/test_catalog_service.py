"""
Unit tests for the cache-aside catalog.
"""

import json
import time
import uuid
from decimal import Decimal
from unittest.mock import MagicMock, patch

import pytest
import redis
from sqlalchemy.exc import OperationalError

from app.domain.errors import BadReference, NotFound, StoreFailure, ValidationFailed
from app.services.cache_service import CacheService
from app.services.catalog_service import PRODUCTS_KEY, CatalogService, product_key


class TestGetProduct:

    def test_returns_created_fields(self, catalog, widget, widget_fields):
        product = catalog.get_product(widget["id"])

        assert product["name"] == widget_fields["name"]
        assert product["description"] == widget_fields["description"]
        assert Decimal(product["price"]) == widget_fields["price"]
        assert product["brand"] == "Acme"
        assert product["category"] == "Tools"
        assert product["count_in_stock"] == 5
        assert product["images"] == widget_fields["images"]

    def test_miss_populates_cache_with_ttl(self, catalog, widget, fake_redis):
        key = product_key(widget["id"])
        assert key not in fake_redis.store

        catalog.get_product(widget["id"])

        assert json.loads(fake_redis.store[key])["id"] == widget["id"]
        assert 3598 <= fake_redis.ttl(key) <= 3600

    def test_hit_does_not_touch_store(self, catalog, widget):
        catalog.get_product(widget["id"])

        with patch.object(catalog.repo, "find_by_id") as find_by_id:
            product = catalog.get_product(widget["id"])

        find_by_id.assert_not_called()
        assert product["id"] == widget["id"]

    def test_cache_down_falls_back_to_store(self, catalog, widget, fake_redis):
        fake_redis.down = True

        product = catalog.get_product(widget["id"])

        assert product["name"] == "Widget"

    def test_malformed_cache_entry_falls_back_to_store(self, catalog, widget, fake_redis):
        fake_redis.store[product_key(widget["id"])] = "garbage{"

        assert catalog.get_product(widget["id"])["name"] == "Widget"

    @pytest.mark.parametrize("payload", [["garbage"], {"id": "x"}, "Widget", 42])
    def test_wrong_shaped_cache_entry_falls_back_to_store(self, catalog, widget, fake_redis, payload):
        key = product_key(widget["id"])
        fake_redis.store[key] = json.dumps(payload)

        product = catalog.get_product(widget["id"])

        assert product["name"] == "Widget"
        assert product["id"] == widget["id"]

    def test_cache_entry_for_other_product_is_a_miss(self, catalog, widget, gadget, fake_redis):
        catalog.get_product(gadget["id"])
        fake_redis.store[product_key(widget["id"])] = fake_redis.store[product_key(gadget["id"])]

        assert catalog.get_product(widget["id"])["name"] == "Widget"

    def test_not_found(self, catalog):
        with pytest.raises(NotFound):
            catalog.get_product(str(uuid.uuid4()))

    @pytest.mark.parametrize("bad_id", ["abc", "123", "", "not-a-uuid-at-all"])
    def test_malformed_id_is_bad_reference(self, catalog, bad_id):
        with pytest.raises(BadReference):
            catalog.get_product(bad_id)

    def test_id_is_normalised_for_cache_key(self, catalog, widget, fake_redis):
        catalog.get_product(widget["id"].upper())

        assert product_key(widget["id"]) in fake_redis.store

    def test_store_failure_propagates(self, catalog, widget, fake_redis):
        fake_redis.down = True

        with patch.object(catalog.repo.db, "get", side_effect=OperationalError("SELECT", {}, Exception("db down"))):
            with pytest.raises(StoreFailure):
                catalog.get_product(widget["id"])


class TestListProducts:

    def test_lists_all(self, catalog, widget, gadget):
        products = catalog.list_products()

        assert sorted(p["name"] for p in products) == ["Gadget", "Widget"]

    def test_list_is_cached(self, catalog, widget, fake_redis):
        catalog.list_products()

        assert len(json.loads(fake_redis.store[PRODUCTS_KEY])) == 1
        with patch.object(catalog.repo, "find") as find:
            assert len(catalog.list_products()) == 1
        find.assert_not_called()

    def test_empty_catalog(self, catalog):
        assert catalog.list_products() == []

    @pytest.mark.parametrize("payload", [{"x": 1}, ["garbage"], [{"id": "x"}], "all"])
    def test_wrong_shaped_list_entry_falls_back_to_store(self, catalog, widget, fake_redis, payload):
        fake_redis.store[PRODUCTS_KEY] = json.dumps(payload)

        assert [p["id"] for p in catalog.list_products()] == [widget["id"]]

    def test_cache_down(self, catalog, widget, fake_redis):
        fake_redis.down = True

        assert [p["id"] for p in catalog.list_products()] == [widget["id"]]


class TestCreateProduct:

    def test_invalidates_list(self, catalog, widget, fake_redis, widget_fields):
        catalog.list_products()
        assert PRODUCTS_KEY in fake_redis.store

        catalog.create_product(dict(widget_fields, name="Widget 2"))

        assert PRODUCTS_KEY not in fake_redis.store
        assert len(catalog.list_products()) == 2

    def test_zero_stock_is_allowed(self, catalog, widget_fields):
        product = catalog.create_product(dict(widget_fields, count_in_stock=0))

        assert product["count_in_stock"] == 0

    @pytest.mark.parametrize("field", ["name", "description", "price", "brand", "category", "count_in_stock"])
    def test_missing_required_field(self, catalog, widget_fields, field):
        fields = dict(widget_fields)
        del fields[field]

        with pytest.raises(ValidationFailed) as exc:
            catalog.create_product(fields)
        assert field in exc.value.details["missing"]

    def test_empty_string_counts_as_missing(self, catalog, widget_fields):
        with pytest.raises(ValidationFailed):
            catalog.create_product(dict(widget_fields, brand=""))

    @pytest.mark.parametrize("override", [{"price": Decimal("-1")}, {"count_in_stock": -3}])
    def test_negative_values_rejected(self, catalog, widget_fields, override):
        with pytest.raises(ValidationFailed):
            catalog.create_product(dict(widget_fields, **override))

    def test_placeholder_image_when_none_given(self, gadget):
        assert len(gadget["images"]) == 1
        assert gadget["images"][0].endswith("Gadget")

    def test_cache_down_does_not_fail_create(self, catalog, widget_fields, fake_redis):
        fake_redis.down = True

        product = catalog.create_product(widget_fields)

        assert product["id"]


class TestUpdateProduct:

    def test_partial_update_keeps_other_fields(self, catalog, widget):
        updated = catalog.update_product(widget["id"], {"price": Decimal("12.50")})

        assert Decimal(updated["price"]) == Decimal("12.50")
        assert updated["name"] == "Widget"
        assert updated["count_in_stock"] == 5

    def test_falsy_values_keep_previous(self, catalog, widget):
        updated = catalog.update_product(widget["id"], {"name": "", "price": 0, "images": []})

        assert updated["name"] == "Widget"
        assert Decimal(updated["price"]) == Decimal("10")
        assert updated["images"] == widget["images"]

    def test_stock_zero_is_applied(self, catalog, widget):
        assert catalog.update_product(widget["id"], {"count_in_stock": 0})["count_in_stock"] == 0

    def test_invalidates_both_keys(self, catalog, widget, fake_redis):
        catalog.get_product(widget["id"])
        catalog.list_products()

        catalog.update_product(widget["id"], {"name": "Widget Pro"})

        assert product_key(widget["id"]) not in fake_redis.store
        assert PRODUCTS_KEY not in fake_redis.store
        assert catalog.get_product(widget["id"])["name"] == "Widget Pro"
        assert catalog.list_products()[0]["name"] == "Widget Pro"

    def test_not_found(self, catalog):
        with pytest.raises(NotFound):
            catalog.update_product(str(uuid.uuid4()), {"name": "x"})

    def test_bad_reference(self, catalog):
        with pytest.raises(BadReference):
            catalog.update_product("nope", {"name": "x"})

    def test_negative_stock_rejected(self, catalog, widget):
        with pytest.raises(ValidationFailed):
            catalog.update_product(widget["id"], {"count_in_stock": -1})


class TestDeleteProduct:

    def test_delete_invalidates_and_removes(self, catalog, widget, fake_redis):
        catalog.get_product(widget["id"])
        catalog.list_products()

        result = catalog.delete_product(widget["id"])

        assert result == {"message": "Product deleted successfully"}
        assert product_key(widget["id"]) not in fake_redis.store
        assert PRODUCTS_KEY not in fake_redis.store
        with pytest.raises(NotFound):
            catalog.get_product(widget["id"])
        assert catalog.list_products() == []

    def test_delete_twice(self, catalog, widget):
        catalog.delete_product(widget["id"])

        with pytest.raises(NotFound):
            catalog.delete_product(widget["id"])


class TestStaleness:
    """Stale reads are possible only inside the TTL window."""

    def test_out_of_band_write_visible_after_ttl(self, catalog, widget, fake_redis):
        catalog.get_product(widget["id"])

        # write that skips invalidation (e.g. a lost delete while redis was down)
        catalog.repo.update_by_id(widget["id"], {"name": "Renamed"})
        assert catalog.get_product(widget["id"])["name"] == "Widget"

        fake_redis.expiry[product_key(widget["id"])] = time.time() - 1

        assert catalog.get_product(widget["id"])["name"] == "Renamed"

    def test_invalidation_lost_while_cache_down(self, catalog, widget, fake_redis):
        catalog.get_product(widget["id"])
        fake_redis.down = True
        catalog.update_product(widget["id"], {"name": "Renamed"})
        fake_redis.down = False

        assert catalog.get_product(widget["id"])["name"] == "Widget"

        fake_redis.expiry[product_key(widget["id"])] = time.time() - 1
        assert catalog.get_product(widget["id"])["name"] == "Renamed"


class TestCacheOutage:

    def test_no_write_back_while_redis_times_out(self, db, widget):
        client = MagicMock()
        client.get.side_effect = redis.TimeoutError("Timeout reading from socket")
        client.setex.side_effect = redis.TimeoutError("Timeout writing to socket")
        service = CacheService(client=client, background_writes=True, max_workers=1)
        service.start()
        try:
            catalog = CatalogService(db, service)

            for _ in range(100):
                assert catalog.get_product(widget["id"])["name"] == "Widget"

            client.setex.assert_not_called()
            assert service.pending_writes() == 0
        finally:
            service.close()

    def test_write_back_resumes_after_recovery(self, db, widget, fake_redis):
        service = CacheService(client=fake_redis, background_writes=False)
        service.start()
        catalog = CatalogService(db, service)

        fake_redis.down = True
        catalog.get_product(widget["id"])
        fake_redis.down = False
        catalog.get_product(widget["id"])

        assert product_key(widget["id"]) in fake_redis.store
