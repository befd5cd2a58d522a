import pytest
from pydantic import ValidationError

from erp_admin.schemas.product_schema import Product
from erp_admin.services.product_form import (
    ProductFormError,
    add_sku,
    add_vendor,
    apply_action,
    blank_form,
    field_name,
    form_from_product,
    form_to_payload,
    parse_form,
    remove_sku,
    remove_vendor,
    update_sku,
    update_sku_price,
    update_vendor_contact,
)

from conftest import product_json, sku_json


def filled_form():
    form = blank_form()
    form = update_sku(form, 0, "skuCode", "A-1")
    form = add_sku(form)
    form = update_sku(form, 1, "skuCode", "A-2")
    return form


def test_blank_form_has_one_sku_with_preferred_vendor():
    form = blank_form()
    assert len(form["skus"]) == 1
    vendors = form["skus"][0]["vendors"]
    assert len(vendors) == 1 and vendors[0]["preferred"] is True
    assert set(form["skus"][0]["attributes"]) == {"size", "color", "material"}


def test_updates_copy_only_the_edited_path():
    before = filled_form()
    after = update_vendor_contact(before, 1, 0, "email", "sales@supplier.com")
    assert before["skus"][1]["vendors"][0]["contactInfo"]["email"] == ""
    assert after["skus"][1]["vendors"][0]["contactInfo"]["email"] == "sales@supplier.com"
    assert after["skus"][0] is before["skus"][0]
    assert after["skus"][1]["attributes"] is before["skus"][1]["attributes"]


def test_unknown_price_tier_is_rejected():
    with pytest.raises(ProductFormError):
        update_sku_price(blank_form(), 0, "vip", 1)


def test_last_sku_cannot_be_removed():
    form = blank_form()
    assert remove_sku(form, 0) is form
    two = filled_form()
    assert [s["skuCode"] for s in remove_sku(two, 0)["skus"]] == ["A-2"]
    assert remove_sku(two, 5) is two


def test_last_vendor_cannot_be_removed():
    form = blank_form()
    assert remove_vendor(form, 0, 0) is form
    form = add_vendor(form, 0)
    assert len(remove_vendor(form, 0, 1)["skus"][0]["vendors"]) == 1


def test_added_vendors_are_not_preferred():
    form = add_vendor(blank_form(), 0)
    assert [v["preferred"] for v in form["skus"][0]["vendors"]] == [True, False]


def block_counts(form):
    return len(form["skus"]), [len(s["vendors"]) for s in form["skus"]]


def test_apply_action_dispatch():
    form = filled_form()
    assert block_counts(apply_action(form, "add_sku")) == (3, [1, 1, 1])
    assert block_counts(apply_action(form, "remove_sku:0")) == (1, [1])
    assert block_counts(apply_action(form, "add_vendor:1")) == (2, [1, 2])
    form = apply_action(form, "add_vendor:1")
    assert block_counts(apply_action(form, "remove_vendor:1:0")) == (2, [1, 1])


@pytest.mark.parametrize("action", ["", "explode", "remove_sku", "remove_vendor:0"])
def test_apply_action_rejects_malformed(action):
    with pytest.raises(ProductFormError):
        apply_action(blank_form(), action)


def test_form_from_product_fills_attribute_slots_and_vendors():
    product = Product.model_validate(
        product_json(skus=[sku_json("A-1", attributes={"size": "L", "fit": "slim"}, vendors=[])])
    )
    form = form_from_product(product)
    sku = form["skus"][0]
    assert sku["attributes"] == {"size": "L", "color": "", "material": "", "fit": "slim"}
    assert sku["vendors"][0]["preferred"] is True
    assert form["description"] == "Widget description"


def test_form_to_payload_drops_blank_optional_fields():
    form = update_sku(blank_form(), 0, "skuCode", "A-1")
    form["name"] = "Widget"
    form["skus"][0]["vendors"][0]["name"] = "Supplier"
    form["skus"][0]["attributes"]["color"] = "Red"
    payload = form_to_payload(form)
    assert "description" not in payload
    assert "brand" not in payload
    assert "barcode" not in payload["skus"][0]
    assert payload["skus"][0]["attributes"] == {"color": "Red"}


def test_form_to_payload_splits_tag_string():
    form = update_sku(blank_form(), 0, "skuCode", "A-1")
    form["name"] = "Widget"
    form["tags"] = "summer, sale,,"
    form["skus"][0]["vendors"][0]["name"] = "Supplier"
    assert form_to_payload(form)["tags"] == ["summer", "sale"]


def test_form_to_payload_reports_duplicate_sku_codes():
    form = update_sku(filled_form(), 1, "skuCode", "A-1")
    form["name"] = "Widget"
    for i in range(2):
        form["skus"][i]["vendors"][0]["name"] = "Supplier"
    with pytest.raises(ValidationError) as exc:
        form_to_payload(form)
    assert "Duplicate SKU code: A-1" in str(exc.value)


def test_editing_unchanged_product_reproduces_its_payload():
    product = Product.model_validate(product_json(categoryId="c1", barcode="123", price=9.5, tags=["x"]))
    assert form_to_payload(form_from_product(product)) == product.to_payload()


@pytest.mark.parametrize("vendor_count", [0, 1, 2])
@pytest.mark.parametrize("sku_count", [0, 1, 3])
def test_unchanged_edit_round_trips_any_block_count(sku_count, vendor_count):
    vendors = [{"name": f"Vendor {j}", "preferred": j == 0, "leadTimeDays": 4} for j in range(vendor_count)]
    skus = [sku_json(f"A-{i}", stock=i, vendors=vendors) for i in range(sku_count)]
    product = Product.model_validate(product_json(skus=skus))
    assert form_to_payload(form_from_product(product)) == product.to_payload()


def test_form_to_payload_treats_blank_text_as_absent():
    skus = [sku_json("A-1", barcode="", attributes={"size": "M", "color": ""})]
    product = Product.model_validate(product_json(skus=skus, brand="", description=""))
    payload = form_to_payload(form_from_product(product))
    assert "brand" not in payload and "description" not in payload
    assert "barcode" not in payload["skus"][0]
    assert payload["skus"][0]["attributes"] == {"size": "M"}


def test_field_name_joins_path():
    assert field_name("skus", 0, "priceList", "retail") == "skus-0-priceList-retail"


def test_parse_form_renumbers_blocks_densely():
    fields = {
        "name": "Widget",
        "tags": "a, b",
        "price": "",
        "skus-0-skuCode": "A-1",
        "skus-3-skuCode": "A-2",
        "skus-3-stockQty": "7",
        "skus-3-priceList-retail": "12.5",
        "skus-3-attributes-fit": "slim",
        "skus-3-vendors-2-name": "Supplier",
        "skus-3-vendors-2-preferred": "on",
        "skus-3-vendors-5-name": "Backup",
        "skus-3-vendors-5-contactInfo-email": "b@supplier.com",
    }
    form = parse_form(fields)
    assert form["price"] is None
    assert form["tags"] == ["a", "b"]
    assert [s["skuCode"] for s in form["skus"]] == ["A-1", "A-2"]
    sku = form["skus"][1]
    assert sku["stockQty"] == 7
    assert sku["priceList"]["retail"] == 12.5
    assert sku["attributes"]["fit"] == "slim"
    assert [v["name"] for v in sku["vendors"]] == ["Supplier", "Backup"]
    assert [v["preferred"] for v in sku["vendors"]] == [True, False]
    assert sku["vendors"][1]["contactInfo"]["email"] == "b@supplier.com"
    # a block without vendor fields still gets the default vendor
    assert form["skus"][0]["vendors"][0]["preferred"] is True


def test_parse_form_bad_numbers_become_zero():
    form = parse_form({"name": "W", "skus-0-skuCode": "A", "skus-0-cost": "abc", "skus-0-stockQty": ""})
    assert form["skus"][0]["cost"] == 0
    assert form["skus"][0]["stockQty"] == 0


def test_parse_form_is_active_flag():
    assert parse_form({"isActive": "false"})["isActive"] is False
    assert parse_form({"isActive": "true"})["isActive"] is True
    assert "isActive" not in parse_form({})


def test_parse_form_count_markers_keep_lists_empty():
    form = parse_form({"name": "Widget", "skuCount": "0"})
    assert form["skus"] == []
    form = parse_form({"name": "Widget", "skuCount": "1", "skus-0-skuCode": "A-1", "skus-0-vendorCount": "0"})
    assert form["skus"][0]["skuCode"] == "A-1"
    assert form["skus"][0]["vendors"] == []


def test_parse_form_without_markers_gets_default_blocks():
    form = parse_form({"name": "Widget"})
    assert len(form["skus"]) == 1
    assert form["skus"][0]["vendors"][0]["preferred"] is True


def test_marker_only_sku_block_is_kept():
    form = parse_form({"skuCount": "1", "skus-0-vendorCount": "0"})
    assert len(form["skus"]) == 1
    assert form["skus"][0]["vendors"] == []
