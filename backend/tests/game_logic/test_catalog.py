"""Tests for catalog loading and validation."""

from decimal import Decimal
from typing import Any

import pytest

from tradeflow_backend.game_logic.catalog import Catalog, default_catalog
from tradeflow_backend.shared.errors import CatalogError, EconomyValidationError


def make_payload(**overrides: Any) -> dict[str, Any]:
    """Build a minimal valid catalog payload."""
    payload: dict[str, Any] = {
        "goods": [
            {
                "identifier": "grain",
                "name": "Grain",
                "category": "raw-materials",
                "base_price": 10,
                "initial_supply": 100,
                "initial_demand": 100,
            }
        ],
        "locations": [
            {
                "identifier": "port-a",
                "name": "Port A",
                "position": {"x": 0, "y": 0},
                "region": "north",
                "capacity": 1000,
                "import_modifiers": {"grain": "1.1"},
            }
        ],
        "asset_definitions": [],
    }
    payload.update(overrides)
    return payload


def test_default_catalog_is_consistent() -> None:
    catalog = default_catalog()

    assert catalog is default_catalog()
    assert catalog.good("electronics").base_price == 120
    assert catalog.location("port-santos").region == "south-america"
    assert catalog.asset_definition("container-vessel").is_transport
    assert catalog.asset_definition("warehouse-mega").is_warehouse
    assert set(catalog.definitions_by_id()) >= {"port-crane", "cargo-aircraft"}


def test_catalog_accepts_valid_payload() -> None:
    catalog = Catalog.from_payload(make_payload())

    port = catalog.location("port-a")

    assert port.regional_modifier("grain", exporting=False) == Decimal("1.1")
    assert port.regional_modifier("grain", exporting=True) == 1


def test_lookup_of_unknown_identifier_fails() -> None:
    with pytest.raises(EconomyValidationError, match="Unknown location"):
        default_catalog().location("atlantis")


@pytest.mark.parametrize(
    "overrides",
    [
        {"goods": [{"identifier": "grain", "name": "Grain"}]},
        {
            "locations": [
                {
                    "identifier": "port-a",
                    "name": "Port A",
                    "position": {"x": 0, "y": 0},
                    "region": "north",
                    "capacity": 10,
                    "import_modifiers": {"spice": "1.5"},
                }
            ]
        },
        {"asset_definitions": [{"identifier": "ship", "unexpected": True}]},
        {
            "goods": [
                {
                    "identifier": "grain",
                    "name": "Grain",
                    "category": "raw-materials",
                    "base_price": "0.001",
                    "initial_supply": 100,
                    "initial_demand": 100,
                }
            ]
        },
    ],
    ids=["missing-fields", "unknown-good-reference", "unknown-field", "sub-cent-base-price"],
)
def test_catalog_rejects_schema_mismatch(overrides: dict[str, Any]) -> None:
    with pytest.raises(CatalogError):
        Catalog.from_payload(make_payload(**overrides))


def test_catalog_rejects_duplicate_identifiers() -> None:
    payload = make_payload()
    payload["goods"] = payload["goods"] * 2

    with pytest.raises(CatalogError, match="Duplicate good"):
        Catalog.from_payload(payload)


def test_storage_class_requires_storage_category() -> None:
    payload = make_payload(
        asset_definitions=[
            {
                "identifier": "odd-ship",
                "name": "Odd Ship",
                "asset_type": "ship",
                "category": "transport",
                "cost": 10,
                "storage_class": "standard",
            }
        ]
    )

    with pytest.raises(CatalogError):
        Catalog.from_payload(payload)
